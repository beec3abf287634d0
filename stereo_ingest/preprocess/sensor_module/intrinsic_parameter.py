# intrinsic_parameter.py
"""
sensor_msgs/CameraInfo 메시지로부터 카메라 내부 파라미터(Intrinsic Parameters)를 추출

- 실시간 입력: 매 메시지마다 CameraIntrinsics.from_camera_info(msg)로 갱신
- 오프라인: ROS2 Bag의 /camera_info 토픽에서 첫 메시지 하나를 읽어 확인용으로 사용

rectified 스테레오 쌍의 경우 오른쪽 카메라 P 행렬의 P(0,3) = Tx = -fx * baseline 이므로
baseline = -Tx / fx 로 복원할 수 있다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
from rosbags.rosbag2 import Reader
from rosbags.typesys import Stores, get_typestore

logger = logging.getLogger(__name__)


def ns_from_header(header) -> int:
    """std_msgs/Header의 stamp를 ns 단위 정수로 변환 (ROS1 secs/nsecs 필드도 허용)"""
    stamp = header.stamp
    sec = getattr(stamp, "sec", None)
    if sec is None:
        sec = stamp.secs
    nanosec = getattr(stamp, "nanosec", None)
    if nanosec is None:
        nanosec = stamp.nsecs
    return int(sec) * 1_000_000_000 + int(nanosec)


def _field(msg, name: str):
    # ROS2 메시지는 소문자(k, p), ROS1 메시지는 대문자(K, P) 필드명을 사용
    value = getattr(msg, name, None)
    if value is None:
        value = getattr(msg, name.upper(), None)
    return value


@dataclass(frozen=True)
class CameraIntrinsics:
    """카메라 한 대의 내부 파라미터 (메시지마다 새로 생성)"""

    fx: float
    fy: float
    cx: float
    cy: float
    width: int
    height: int
    tx: float = 0.0  # P(0,3), 스테레오 오른쪽 카메라의 수평 오프셋 항
    stamp_ns: int = 0
    frame_id: str = ""

    @property
    def image_size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def from_camera_info(cls, msg) -> "CameraIntrinsics":
        """
        CameraInfo 메시지를 CameraIntrinsics로 변환

        P 행렬이 채워져 있으면(rectified 투영 행렬) P에서, 비어 있으면 K에서
        fx, fy, cx, cy를 가져온다.
        """
        K = np.asarray(_field(msg, "k"), dtype=np.float64).reshape(3, 3)
        p_raw = _field(msg, "p")
        P = np.asarray(p_raw, dtype=np.float64).reshape(3, 4) if p_raw is not None else np.zeros((3, 4))

        if P[0, 0] != 0.0:
            fx, fy, cx, cy = P[0, 0], P[1, 1], P[0, 2], P[1, 2]
        else:
            fx, fy, cx, cy = K[0, 0], K[1, 1], K[0, 2], K[1, 2]

        return cls(
            fx=float(fx),
            fy=float(fy),
            cx=float(cx),
            cy=float(cy),
            width=int(msg.width),
            height=int(msg.height),
            tx=float(P[0, 3]),
            stamp_ns=ns_from_header(msg.header),
            frame_id=str(msg.header.frame_id),
        )

    def stereo_baseline(self) -> float:
        """오른쪽 카메라 기준 baseline = -Tx / fx (fx가 0이면 0)"""
        if self.fx == 0.0:
            return 0.0
        return -self.tx / self.fx


# ROSBAG 경로 확인
def check_rosbag_path(bag_path: Path) -> bool:
    if not bag_path.exists():
        logger.error(f"Bag path does not exist: {bag_path}")
        return False

    # rosbag2 디렉터리는 metadata.yaml을 반드시 포함
    metadata_file = bag_path / "metadata.yaml"
    if not metadata_file.exists():
        logger.error(f"metadata.yaml not found: {metadata_file}")
        return False
    return True


def get_camera_parameter(bag_path: Path, camera_info_topic: str) -> Optional[CameraIntrinsics]:
    """
    ROS2 Bag에서 CameraInfo 첫 메시지를 읽어 CameraIntrinsics로 반환

    Args:
        bag_path (Path): rosbag2 경로
        camera_info_topic (str): 카메라 정보 토픽 이름 (예: '/stereo_camera/left/camera_info')

    Returns:
        CameraIntrinsics 또는 None (경로가 잘못되었거나 메시지가 없는 경우)
    """
    if not check_rosbag_path(bag_path):
        return None

    typestore = get_typestore(Stores.ROS2_FOXY)
    with Reader(bag_path) as reader:
        conns = [c for c in reader.connections
                 if c.topic == camera_info_topic and c.msgtype == "sensor_msgs/msg/CameraInfo"]
        for conn, _, rawdata in reader.messages(conns):
            msg = typestore.deserialize_cdr(rawdata, conn.msgtype)
            return CameraIntrinsics.from_camera_info(msg)

    logger.warning(f"No CameraInfo message found on {camera_info_topic}")
    return None
