"""
Scene Control Panel
"""
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QPushButton, QGroupBox
)
from PySide6.QtCore import Signal, Qt

from facadestudio import config
from facadestudio.model.lighting import LightingPreset, PRESETS


class SceneControlPanel(QWidget):
    randomize_requested = Signal()
    preset_requested = Signal(str)
    export_requested = Signal()

    def __init__(self) -> None:
        super().__init__()
        layout = QVBoxLayout(self)

        # --- Scene Group ---
        grp = QGroupBox("Scene Controls")
        grp_layout = QVBoxLayout(grp)

        hint = QLabel("Drag to orbit. Scroll to zoom. Shift+Drag to pan.")
        hint.setWordWrap(True)
        hint.setStyleSheet("color: gray;")
        grp_layout.addWidget(hint)

        self.btn_randomize = QPushButton("Randomize Rhythm")
        self.btn_randomize.clicked.connect(self.randomize_requested.emit)
        grp_layout.addWidget(self.btn_randomize)

        self.preset_buttons: dict[LightingPreset, QPushButton] = {}
        for preset, setup in PRESETS.items():
            btn = QPushButton(setup.label)
            btn.clicked.connect(lambda _=False, p=preset: self.preset_requested.emit(p.value))
            grp_layout.addWidget(btn)
            self.preset_buttons[preset] = btn

        layout.addWidget(grp)

        # --- Export Group ---
        export_grp = QGroupBox("8K Export")
        export_layout = QVBoxLayout(export_grp)

        info = QLabel(
            f"Exports a single high-resolution frame "
            f"({config.EXPORT_WIDTH}×{config.EXPORT_HEIGHT}) as PNG."
        )
        info.setWordWrap(True)
        info.setStyleSheet("color: gray;")
        export_layout.addWidget(info)

        self.btn_export = QPushButton("Render 8K")
        self.btn_export.setMinimumHeight(40)
        self.btn_export.clicked.connect(self.export_requested.emit)
        export_layout.addWidget(self.btn_export)

        layout.addWidget(export_grp)

        # --- Status Info ---
        self.lbl_status = QLabel("Ready")
        self.lbl_status.setAlignment(Qt.AlignCenter)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        layout.addStretch()

    # --- PROPERTIES ---

    @property
    def status_message(self) -> str:
        return self.lbl_status.text()

    @status_message.setter
    def status_message(self, text: str) -> None:
        self.lbl_status.setText(text or "Ready")

    def set_busy(self, busy: bool) -> None:
        self.btn_export.setEnabled(not busy)
        self.btn_export.setText("Rendering…" if busy else "Render 8K")
