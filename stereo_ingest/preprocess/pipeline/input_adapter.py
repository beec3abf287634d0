# input_adapter.py
"""
입력 경로별 어댑터: 어떤 경로로 들어오든 같은 SyncGroup 형태를 만든다

- FourStreamAdapter: 좌/우 image_rect + camera_info 4개 토픽 → FrameSynchronizer → SyncGroup
- PackedMessageAdapter: 좌/우 영상과 camera_info를 모두 담은 하나의 메시지 → SyncGroup

두 경로는 TF 조회에 쓰는 프레임과 출력 헤더 프레임이 다르므로 각 어댑터가 직접 채운다.
"""

from __future__ import annotations

from typing import Optional

from ..sensor_module.intrinsic_parameter import CameraIntrinsics
from ..types import PackedStereoMessage, RawImageMessage, SyncGroup
from .synchronizer import LEFT_IMAGE, LEFT_INFO, RIGHT_IMAGE, RIGHT_INFO, FrameSynchronizer


class FourStreamAdapter:
    def __init__(self, synchronizer: FrameSynchronizer):
        self.synchronizer = synchronizer

    def _add(self, channel: str, msg, stamp_ns: int) -> Optional[SyncGroup]:
        synced = self.synchronizer.add(channel, msg, stamp_ns)
        if synced is None:
            return None
        return self.to_group(synced.left_image, synced.right_image, synced.left_info, synced.right_info)

    def on_left_image(self, msg: RawImageMessage) -> Optional[SyncGroup]:
        return self._add(LEFT_IMAGE, msg, msg.stamp_ns)

    def on_right_image(self, msg: RawImageMessage) -> Optional[SyncGroup]:
        return self._add(RIGHT_IMAGE, msg, msg.stamp_ns)

    def on_left_info(self, info: CameraIntrinsics) -> Optional[SyncGroup]:
        return self._add(LEFT_INFO, info, info.stamp_ns)

    def on_right_info(self, info: CameraIntrinsics) -> Optional[SyncGroup]:
        return self._add(RIGHT_INFO, info, info.stamp_ns)

    @staticmethod
    def to_group(left: RawImageMessage, right: RawImageMessage,
                 left_info: CameraIntrinsics, right_info: CameraIntrinsics) -> SyncGroup:
        return SyncGroup(
            left=left,
            right=right,
            left_info=left_info,
            right_info=right_info,
            header_frame_id=left.frame_id,
            extrinsic_frames=(right_info.frame_id, left_info.frame_id),
            fallback_frames=(left_info.frame_id, right_info.frame_id),
        )


class PackedMessageAdapter:
    """packed 메시지는 이미 동기화되어 있으므로 큐 없이 바로 변환"""

    @staticmethod
    def to_group(msg: PackedStereoMessage) -> SyncGroup:
        return SyncGroup(
            left=msg.left,
            right=msg.right,
            left_info=msg.left_info,
            right_info=msg.right_info,
            header_frame_id=msg.frame_id,
            # depth(=오른쪽) camera_info → rgb(=왼쪽) camera_info
            extrinsic_frames=(msg.right_info.frame_id, msg.left_info.frame_id),
            fallback_frames=(msg.left_info.frame_id, msg.right_info.frame_id),
        )
