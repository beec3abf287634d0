"""
SensorFrame을 Rerun으로 시각화하는 다운스트림 consumer

- world: 기준 좌표계 (config의 frame_id)
- world/camera: 기준 좌표계 → 왼쪽 카메라 장착 변환 (calibration.local_transform)
- world/camera/left, world/camera/right: Pinhole + 정규화된 영상 (오른쪽은 baseline만큼 이동)
"""

import numpy as np
import rerun as rr

from stereo_ingest.preprocess.types import SensorFrame
from stereo_ingest.viewer.rerun_blueprint import log_description, setup_rerun_blueprint


class RerunFrameSink:
    def __init__(self, recording_name: str, spawn: bool = True, image_plane_distance: float = 0.2):
        self.image_plane_distance = image_plane_distance
        rr.init(recording_name, spawn=spawn)
        setup_rerun_blueprint()
        log_description()

    def __call__(self, frame: SensorFrame) -> None:
        calib = frame.calibration
        rr.set_time("stamp", timestamp=np.datetime64(frame.stamp_ns, "ns"))

        local = calib.local_transform
        rr.log("world/camera", rr.Transform3D(translation=local.translation, mat3x3=local.rotation))

        pinhole = rr.Pinhole(
            resolution=[calib.image_size[0], calib.image_size[1]],
            focal_length=[calib.fx, calib.fy],
            principal_point=[calib.cx, calib.cy],
            image_plane_distance=self.image_plane_distance,
        )
        rr.log("world/camera/left", pinhole)
        rr.log("world/camera/right", rr.Transform3D(translation=[calib.baseline, 0.0, 0.0]))
        rr.log("world/camera/right", pinhole)

        if frame.is_color:
            rr.log("world/camera/left", rr.Image(frame.left, color_model="BGR"))
        else:
            rr.log("world/camera/left", rr.Image(frame.left))
        rr.log("world/camera/right", rr.Image(frame.right))
