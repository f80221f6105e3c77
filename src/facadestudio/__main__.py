"""Command-line interface."""
from facadestudio.main import main

if __name__ == "__main__":
    main()
