# stereo_processor.py
"""
스테레오 입력 처리 파이프라인 (이벤트 단위)

입력:
    - 4개 스트림 경로: 좌/우 image_rect + 좌/우 camera_info (FrameSynchronizer로 동기화)
    - packed 경로: 좌/우 영상과 camera_info를 한 번에 담은 메시지

처리 단계 (이벤트 하나를 호출 안에서 끝까지 동기 처리):
1) 일시정지 상태면 이벤트를 받기만 하고 버림
2) 좌/우 인코딩 검증
3) 기준 좌표계 → 왼쪽 카메라 TF 조회 (실패 시 캘리브레이션 전에 폐기)
4) 빈 영상 확인
5) StereoCalibrationResolver로 스테레오 캘리브레이션 계산
6) ImageNormalizer로 픽셀 표현 정규화
7) FrameEmitter로 SensorFrame 조립 후 다운스트림 전달

오류는 모두 현재 이벤트에 국한: 로그를 남기고 해당 이벤트만 버린다.

주요 클래스:
- StereoOdometryInput: 위 단계를 수행하는 파이프라인 제어 클래스
- create_stereo_input: 설정/TF 조회기/consumer로 파이프라인을 구성하는 생성 함수
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from ..config import StereoInputConfig
from ..errors import EmptyImagePayload, MissingReferenceTransform, StereoInputError
from ..sensor_module.image_encoding import EncodingValidator, ImageNormalizer
from ..sensor_module.intrinsic_parameter import CameraIntrinsics
from ..sensor_module.stereo_calibration import StereoCalibrationResolver
from ..sensor_module.transform_buffer import TransformResolver
from ..types import PackedStereoMessage, RawImageMessage, SensorFrame, SyncGroup
from .frame_emitter import FrameConsumer, FrameEmitter
from .input_adapter import FourStreamAdapter, PackedMessageAdapter
from .synchronizer import FrameSynchronizer

# 경고 수준으로 남기는 오류 (나머지는 error)
_WARNING_ERRORS = (EmptyImagePayload, MissingReferenceTransform)


@dataclass
class InputStats:
    received: int = 0
    emitted: int = 0
    paused_drops: int = 0
    errors: Counter = field(default_factory=Counter)
    last_callback_ns: Optional[int] = None

    @property
    def dropped(self) -> int:
        return self.paused_drops + sum(self.errors.values())

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "emitted": self.emitted,
            "paused_drops": self.paused_drops,
            "errors": dict(self.errors),
        }


def _as_image(msg) -> RawImageMessage:
    return msg if isinstance(msg, RawImageMessage) else RawImageMessage.from_ros(msg)


def _as_info(msg) -> CameraIntrinsics:
    return msg if isinstance(msg, CameraIntrinsics) else CameraIntrinsics.from_camera_info(msg)


class StereoOdometryInput:
    def __init__(self,
                 config: StereoInputConfig,
                 transform_resolver: TransformResolver,
                 consumer: Optional[FrameConsumer] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.transform_resolver = transform_resolver

        self.validator = EncodingValidator()
        self.normalizer = ImageNormalizer()
        self.calibration_resolver = StereoCalibrationResolver(transform_resolver, logger=self.logger)
        self.emitter = FrameEmitter(config.frame_id, transform_resolver, consumer)

        self.synchronizer = FrameSynchronizer(
            approx_sync=config.approx_sync,
            queue_size=config.queue_size,
            max_interval_ns=config.approx_sync_max_interval_ns,
        )
        self.four_stream = FourStreamAdapter(self.synchronizer)
        self.packed = PackedMessageAdapter()

        self.stats = InputStats()
        # 콜백과 rebuild()가 공유하는 임계 구역
        self._lock = threading.RLock()
        self._paused = False

        self.logger.info(f"StereoOdometryInput: approx_sync = {config.approx_sync}")
        self.logger.info(f"StereoOdometryInput: queue_size = {config.queue_size}")
        self.logger.info(f"StereoOdometryInput: subscribe_rgbd = {config.subscribe_rgbd}")
        self.logger.info(f"StereoOdometryInput: keep_color = {config.keep_color}")
        self.logger.info(f"StereoOdometryInput: already_rectified = {config.already_rectified}")
        self.logger.info(f"StereoOdometryInput: frame_id = {config.frame_id}")

    # ---------------------------------------------------------
    # 일시정지 / 재구성
    # ---------------------------------------------------------
    @property
    def is_paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True
        self.logger.info("StereoOdometryInput paused")

    def resume(self) -> None:
        self._paused = False
        self.logger.info("StereoOdometryInput resumed")

    def rebuild(self, approx_sync: Optional[bool] = None, queue_size: Optional[int] = None) -> None:
        """동기화기 상태를 새로 생성 (미매칭 메시지는 폐기). 실패 시 설정은 바뀌지 않음"""
        with self._lock:
            approx_sync = self.config.approx_sync if approx_sync is None else bool(approx_sync)
            queue_size = self.config.queue_size if queue_size is None else int(queue_size)
            # 잘못된 값이면 여기서 ValueError, config는 기존 값 유지
            self.synchronizer.rebuild(approx_sync, queue_size, self.config.approx_sync_max_interval_ns)
            self.config.approx_sync = approx_sync
            self.config.queue_size = queue_size
        self.logger.info(
            f"Synchronizer rebuilt ({self.synchronizer.policy_name} sync, queue_size={self.synchronizer.queue_size})"
        )

    def subscribed_topics_message(self) -> str:
        topics = self.config.topics
        if self.config.subscribe_rgbd:
            return f"\nStereoOdometryInput subscribed to:\n   {topics.rgbd_image}"
        return (
            f"\nStereoOdometryInput subscribed to ({self.synchronizer.policy_name} sync):\n"
            f"   {topics.image_left} \\\n"
            f"   {topics.image_right} \\\n"
            f"   {topics.camera_left_info} \\\n"
            f"   {topics.camera_right_info}"
        )

    # ---------------------------------------------------------
    # 입력 콜백
    # ---------------------------------------------------------
    def _require_four_stream(self) -> None:
        if self.config.subscribe_rgbd:
            raise RuntimeError("subscribe_rgbd is enabled; use on_packed() for input")

    def _on_channel(self, handler, msg) -> Optional[SensorFrame]:
        self._require_four_stream()
        with self._lock:
            group = handler(msg)
            if group is None:
                return None
            return self.process(group)

    def on_left_image(self, msg) -> Optional[SensorFrame]:
        return self._on_channel(self.four_stream.on_left_image, _as_image(msg))

    def on_right_image(self, msg) -> Optional[SensorFrame]:
        return self._on_channel(self.four_stream.on_right_image, _as_image(msg))

    def on_left_info(self, msg) -> Optional[SensorFrame]:
        return self._on_channel(self.four_stream.on_left_info, _as_info(msg))

    def on_right_info(self, msg) -> Optional[SensorFrame]:
        return self._on_channel(self.four_stream.on_right_info, _as_info(msg))

    def on_packed(self, msg) -> Optional[SensorFrame]:
        if not self.config.subscribe_rgbd:
            raise RuntimeError("subscribe_rgbd is disabled; use the four-stream callbacks for input")
        if not isinstance(msg, PackedStereoMessage):
            msg = PackedStereoMessage.from_ros(msg)
        return self.process(self.packed.to_group(msg))

    # ---------------------------------------------------------
    # 이벤트 처리
    # ---------------------------------------------------------
    def process(self, group: SyncGroup) -> Optional[SensorFrame]:
        """동기화된 이벤트 하나를 처리. 성공 시 SensorFrame, 폐기 시 None"""
        with self._lock:
            self.stats.received += 1
            self.stats.last_callback_ns = time.monotonic_ns()
            if self._paused:
                self.stats.paused_drops += 1
                return None

            try:
                frame = self._process(group)
            except StereoInputError as e:
                self.stats.errors[type(e).__name__] += 1
                level = logging.WARNING if isinstance(e, _WARNING_ERRORS) else logging.ERROR
                self.logger.log(level, f"Dropped stereo event at {group.stamp_ns} ns: {e}")
                return None

            self.stats.emitted += 1
            return frame

    def _process(self, group: SyncGroup) -> SensorFrame:
        self.validator.validate_pair(group.left.encoding, group.right.encoding)

        local_transform = self.emitter.lookup_local_transform(group)

        if group.left.is_empty or group.right.is_empty:
            raise EmptyImagePayload(len(group.left.data), len(group.right.data))

        calibration = self.calibration_resolver.resolve(
            group.left_info,
            group.right_info,
            local_transform,
            self.config.already_rectified,
            extrinsic_frames=group.extrinsic_frames,
            fallback_frames=group.fallback_frames,
            lookup_stamp_ns=group.lookup_stamp_ns,
        )

        left, right = self.normalizer.normalize_pair(group.left, group.right, self.config.keep_color)

        self.logger.debug(f"localTransform = {local_transform.pretty()}")
        return self.emitter.emit(group, calibration, left, right)


def create_stereo_input(config: Optional[StereoInputConfig],
                        transform_resolver: TransformResolver,
                        consumer: Optional[FrameConsumer] = None) -> StereoOdometryInput:
    """설정(None이면 기본값), TF 조회기, consumer로 파이프라인 생성"""
    return StereoOdometryInput(config or StereoInputConfig(), transform_resolver, consumer)
