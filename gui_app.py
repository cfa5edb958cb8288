import logging
import sys
from typing import Optional

import cv2
from PySide6 import QtCore, QtGui, QtWidgets

from app import Runtime, create_runtime
from camera import CameraStream
from config import AppConfig, configure_logging, load_config
from pose_detection import PoseDetector
from pose_types import DetectionThresholds
from spotify_client import SpotifyAuthorizer
from visualization import render_frame

logger = logging.getLogger(__name__)


class RenewalBridge(QtCore.QObject):
    # Renewal can be requested from the playback thread; hop to the GUI thread.
    renewal_requested = QtCore.Signal(str)


class ParameterPanel(QtWidgets.QFrame):
    MODEL_CHOICES = [("Lite", 0), ("Full", 1), ("Heavy", 2)]

    def __init__(self, config: AppConfig, parent=None):
        super().__init__(parent)
        self.setStyleSheet("QFrame{background:#15181b;border:1px solid #2b2f33;border-radius:10px;color:#e6e6e6;}")
        layout = QtWidgets.QFormLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        self.min_pose = self._confidence_box(config.detection.min_pose_confidence)
        self.min_part = self._confidence_box(config.detection.min_part_confidence)
        layout.addRow("Min pose confidence", self.min_pose)
        layout.addRow("Min part confidence", self.min_part)

        self.model = QtWidgets.QComboBox()
        for label, complexity in self.MODEL_CHOICES:
            self.model.addItem(label, complexity)
        self.model.setCurrentIndex(max(0, self.model.findData(config.detection.model_complexity)))
        layout.addRow("Pose model", self.model)

        out = config.output
        self.show_video = QtWidgets.QCheckBox("Show video")
        self.show_video.setChecked(out.show_video)
        self.show_skeleton = QtWidgets.QCheckBox("Show skeleton")
        self.show_skeleton.setChecked(out.show_skeleton)
        self.show_points = QtWidgets.QCheckBox("Show points")
        self.show_points.setChecked(out.show_points)
        self.show_box = QtWidgets.QCheckBox("Show bounding box")
        self.show_box.setChecked(out.show_bounding_box)
        for box in [self.show_video, self.show_skeleton, self.show_points, self.show_box]:
            layout.addRow(box)

    @staticmethod
    def _confidence_box(value: float) -> QtWidgets.QDoubleSpinBox:
        box = QtWidgets.QDoubleSpinBox()
        box.setRange(0.0, 1.0)
        box.setSingleStep(0.05)
        box.setDecimals(2)
        box.setValue(value)
        return box

    def thresholds(self) -> DetectionThresholds:
        # Read on every frame so panel edits apply to the next classification.
        return DetectionThresholds(self.min_pose.value(), self.min_part.value())

    def model_complexity(self) -> int:
        return int(self.model.currentData())


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, config: AppConfig):
        super().__init__()
        self.config = config
        self.setWindowTitle("Pose Music")
        self.resize(1100, 620)
        self.runtime: Runtime = create_runtime(config)
        self.bridge = RenewalBridge()
        self.runtime.authorizer.add_renewal_listener(self.bridge.renewal_requested.emit)
        self.bridge.renewal_requested.connect(self._prompt_for_token, QtCore.Qt.QueuedConnection)
        self._prompt_open = False
        self._setup_ui()
        self._setup_runtime()

    def _setup_ui(self):
        self.setStyleSheet("QMainWindow{background:#0f1113;} QLabel{color:#e6e6e6;}")
        root = QtWidgets.QWidget()
        self.setCentralWidget(root)
        layout = QtWidgets.QHBoxLayout(root)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(16)

        self.video_label = QtWidgets.QLabel("Camera feed")
        self.video_label.setAlignment(QtCore.Qt.AlignCenter)
        self.video_label.setMinimumSize(600, 500)
        self.video_label.setStyleSheet("background:#101214; border-radius:12px;")

        right_panel = QtWidgets.QVBoxLayout()
        right_panel.setSpacing(12)

        self.gesture_label = QtWidgets.QLabel("Gesture: -")
        self.gesture_label.setStyleSheet("font-size:20px;font-weight:600;")
        self.status_label = QtWidgets.QLabel("")
        self.status_label.setStyleSheet("color:#ff9b9b;")
        self.fps_label = QtWidgets.QLabel("FPS: -")

        self.panel = ParameterPanel(self.config)
        self.panel.model.currentIndexChanged.connect(self._reload_detector)

        self.device_combo = QtWidgets.QComboBox()
        self.device_combo.currentIndexChanged.connect(self._on_device_changed)
        refresh_btn = QtWidgets.QPushButton("Refresh devices")
        refresh_btn.clicked.connect(self._refresh_devices)
        login_btn = QtWidgets.QPushButton("Log in to Spotify")
        login_btn.clicked.connect(lambda: self.runtime.authorizer.request_renewal(force=True))

        right_panel.addWidget(self.gesture_label)
        right_panel.addWidget(self.fps_label)
        right_panel.addWidget(self.panel)
        right_panel.addWidget(QtWidgets.QLabel("Playback device"))
        right_panel.addWidget(self.device_combo)
        right_panel.addWidget(refresh_btn)
        right_panel.addWidget(login_btn)
        right_panel.addWidget(self.status_label)
        right_panel.addStretch(1)

        layout.addWidget(self.video_label, 1)
        layout.addLayout(right_panel)

    def _setup_runtime(self):
        cam = self.config.camera
        self.camera: Optional[CameraStream] = CameraStream(cam.index, cam.width, cam.height, cam.target_fps)
        if not self.camera.open():
            self.status_label.setText("Camera error")
            self.camera = None
        self.detector = self._create_detector()

        if self.runtime.authorizer.ensure_authorized():
            self._refresh_devices()

        self.timer = QtCore.QTimer(self)
        self.timer.timeout.connect(self._update_frame)
        self.timer.start(33)

    def _create_detector(self) -> PoseDetector:
        return PoseDetector(
            model_complexity=self.panel.model_complexity(),
            flip_horizontal=self.config.detection.flip_horizontal,
        )

    def _reload_detector(self, _idx: int):
        # The MediaPipe graph is built for one model; swap in a fresh detector.
        logger.info("[GUI] loading pose model complexity %d", self.panel.model_complexity())
        self.detector.close()
        self.detector = self._create_detector()

    def _refresh_devices(self):
        devices = self.runtime.devices.refresh()
        selected = self.runtime.devices.selected()
        self.device_combo.blockSignals(True)
        self.device_combo.clear()
        for device in devices:
            self.device_combo.addItem(device.name, device.id)
        idx = self.device_combo.findData(selected)
        if idx >= 0:
            self.device_combo.setCurrentIndex(idx)
        self.device_combo.blockSignals(False)

    def _on_device_changed(self, idx: int):
        if idx < 0:
            return
        self.runtime.devices.select(self.device_combo.itemData(idx))

    def _prompt_for_token(self, url: str):
        self.status_label.setText("Spotify login required")
        if self._prompt_open:
            return
        self._prompt_open = True
        try:
            text, ok = QtWidgets.QInputDialog.getText(
                self,
                "Spotify login",
                "Log in in the browser, then paste the redirect URL or access token:",
            )
        finally:
            self._prompt_open = False
        if not ok or not text.strip():
            return
        token = SpotifyAuthorizer.token_from_redirect(text.strip()) or text.strip()
        self.runtime.authorizer.set_token(token)
        self.status_label.setText("")
        self._refresh_devices()

    def _update_frame(self):
        if self.camera is None:
            return
        cam_frame = self.camera.read()
        if not cam_frame.ok:
            self.status_label.setText("Camera error")
            return

        thresholds = self.panel.thresholds()
        pose = self.detector.process(cam_frame.frame, cam_frame.timestamp)
        self.runtime.session.process_frame(pose, thresholds)
        self.gesture_label.setText(f"Gesture: {self.runtime.session.current_gesture or '-'}")
        self.fps_label.setText(f"FPS: {self.camera.fps:.1f}")

        frame = render_frame(
            cam_frame.frame,
            pose,
            thresholds.min_pose_confidence,
            thresholds.min_part_confidence,
            show_video=self.panel.show_video.isChecked(),
            show_skeleton=self.panel.show_skeleton.isChecked(),
            show_points=self.panel.show_points.isChecked(),
            show_bounding_box=self.panel.show_box.isChecked(),
            mirror=self.config.detection.flip_horizontal,
        )
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, ch = frame_rgb.shape
        image = QtGui.QImage(frame_rgb.data, w, h, ch * w, QtGui.QImage.Format_RGB888)
        pixmap = QtGui.QPixmap.fromImage(image)
        self.video_label.setPixmap(pixmap.scaled(self.video_label.size(), QtCore.Qt.KeepAspectRatio))

    def closeEvent(self, event):
        self.timer.stop()
        self.runtime.close()
        self.detector.close()
        if self.camera is not None:
            self.camera.release()
            self.camera = None
        super().closeEvent(event)


def main():
    config = load_config()
    configure_logging(config.logging.level)
    app = QtWidgets.QApplication(sys.argv)
    window = MainWindow(config)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
