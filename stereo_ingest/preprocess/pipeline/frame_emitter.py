# frame_emitter.py
"""
검증/캘리브레이션/정규화가 끝난 결과를 SensorFrame으로 조립해 다운스트림에 전달

- 기준 좌표계(frame_id) → 왼쪽 카메라 프레임 변환을 이벤트 시각에 조회 (실패 시 즉시 폐기)
- 성공한 이벤트마다 consumer를 정확히 한 번 호출, 버퍼링/배치 없음
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from ..errors import MissingReferenceTransform
from ..sensor_module.odometry import RigidTransform
from ..sensor_module.stereo_calibration import StereoCalibration
from ..sensor_module.transform_buffer import TransformResolver
from ..types import SensorFrame, SyncGroup

FrameConsumer = Callable[[SensorFrame], object]


class FrameEmitter:
    def __init__(self, reference_frame_id: str, transform_resolver: TransformResolver,
                 consumer: Optional[FrameConsumer] = None):
        self.reference_frame_id = reference_frame_id
        self.transform_resolver = transform_resolver
        self.consumer = consumer

    def lookup_local_transform(self, group: SyncGroup) -> RigidTransform:
        local_transform = self.transform_resolver.lookup(
            self.reference_frame_id, group.left.frame_id, group.stamp_ns
        )
        if local_transform is None:
            raise MissingReferenceTransform(self.reference_frame_id, group.left.frame_id, group.stamp_ns)
        return local_transform

    def emit(self, group: SyncGroup, calibration: StereoCalibration,
             left: np.ndarray, right: np.ndarray) -> SensorFrame:
        frame = SensorFrame(
            left=left,
            right=right,
            calibration=calibration,
            stamp_ns=group.stamp_ns,
            frame_id=self.reference_frame_id,
            source_frame_id=group.header_frame_id,
        )
        if self.consumer is not None:
            # 반환값은 사용하지 않음
            self.consumer(frame)
        return frame
