"""
스테레오 입력 파이프라인 데이터 모델

- RawImageMessage: sensor_msgs/Image를 불변 값으로 복사한 것
- PackedStereoMessage: 좌/우 영상과 두 camera_info를 한 번에 담은 메시지 (rtabmap RGBDImage)
- SyncGroup: 동기화된 하나의 이벤트 (어떤 입력 경로든 같은 형태)
- SensorFrame: 다운스트림 추정기로 넘기는 최종 스테레오 프레임
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .sensor_module.intrinsic_parameter import CameraIntrinsics, ns_from_header
from .sensor_module.stereo_calibration import StereoCalibration


@dataclass(frozen=True)
class RawImageMessage:
    data: bytes
    encoding: str
    height: int
    width: int
    step: int
    stamp_ns: int
    frame_id: str
    is_bigendian: bool = False

    @classmethod
    def from_ros(cls, msg) -> "RawImageMessage":
        return cls(
            data=bytes(msg.data),
            encoding=str(msg.encoding),
            height=int(msg.height),
            width=int(msg.width),
            step=int(msg.step),
            stamp_ns=ns_from_header(msg.header),
            frame_id=str(msg.header.frame_id),
            is_bigendian=bool(msg.is_bigendian),
        )

    @classmethod
    def from_array(cls, img: np.ndarray, encoding: str, stamp_ns: int, frame_id: str) -> "RawImageMessage":
        """numpy 배열로부터 메시지를 구성 (합성 입력 / 테스트용)"""
        img = np.ascontiguousarray(img)
        height, width = img.shape[:2]
        return cls(
            data=img.tobytes(),
            encoding=encoding,
            height=int(height),
            width=int(width),
            step=int(img.strides[0]),
            stamp_ns=int(stamp_ns),
            frame_id=frame_id,
            is_bigendian=img.dtype.byteorder == ">",
        )

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0


@dataclass(frozen=True)
class PackedStereoMessage:
    stamp_ns: int
    frame_id: str
    left: RawImageMessage
    right: RawImageMessage
    left_info: CameraIntrinsics
    right_info: CameraIntrinsics

    @classmethod
    def from_ros(cls, msg) -> "PackedStereoMessage":
        """rtabmap_msgs/RGBDImage (rgb → 왼쪽, depth → 오른쪽)"""
        return cls(
            stamp_ns=ns_from_header(msg.header),
            frame_id=str(msg.header.frame_id),
            left=RawImageMessage.from_ros(msg.rgb),
            right=RawImageMessage.from_ros(msg.depth),
            left_info=CameraIntrinsics.from_camera_info(msg.rgb_camera_info),
            right_info=CameraIntrinsics.from_camera_info(msg.depth_camera_info),
        )


@dataclass(frozen=True)
class SyncGroup:
    left: RawImageMessage
    right: RawImageMessage
    left_info: CameraIntrinsics
    right_info: CameraIntrinsics
    header_frame_id: str
    # 입력 경로별 TF 조회 프레임 쌍 (from, to)
    extrinsic_frames: Tuple[str, str]
    fallback_frames: Tuple[str, str]

    @property
    def stamp_ns(self) -> int:
        # 발행 지연을 고려해 두 영상 중 늦은 시각을 이벤트 시각으로 사용
        return max(self.left.stamp_ns, self.right.stamp_ns)

    @property
    def lookup_stamp_ns(self) -> int:
        return self.left_info.stamp_ns


@dataclass(frozen=True)
class SensorFrame:
    left: np.ndarray
    right: np.ndarray
    calibration: StereoCalibration
    stamp_ns: int
    frame_id: str
    source_frame_id: str = ""

    @property
    def is_color(self) -> bool:
        return self.left.ndim == 3
