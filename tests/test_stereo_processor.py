"""단위 테스트: 이벤트 처리 파이프라인 (동기화 → 검증 → 캘리브레이션 → 정규화 → 전달)."""

from __future__ import annotations

import logging
import unittest

import numpy as np

from stereo_ingest.preprocess.config import StereoInputConfig
from stereo_ingest.preprocess.pipeline import StereoOdometryInput, create_stereo_input
from stereo_ingest.preprocess.types import PackedStereoMessage, RawImageMessage, SensorFrame

from stereo_fixtures import (
    BASE_FRAME,
    LEFT_FRAME,
    RIGHT_FRAME,
    base_resolver,
    make_image,
    make_info,
    translation,
)

PROCESSOR_LOGGER = "stereo_ingest.preprocess.pipeline.stereo_processor"


class _Collector:
    def __init__(self):
        self.frames = []

    def __call__(self, frame: SensorFrame):
        self.frames.append(frame)


def _feed_four(pipeline: StereoOdometryInput, stamp_ns: int = 1_000,
               left_encoding: str = "mono8", right_encoding: str = "mono8",
               right_tx: float = -50.0):
    pipeline.on_left_image(make_image(left_encoding, stamp_ns=stamp_ns, frame_id=LEFT_FRAME))
    pipeline.on_right_image(make_image(right_encoding, stamp_ns=stamp_ns, frame_id=RIGHT_FRAME))
    pipeline.on_left_info(make_info(tx=0.0, stamp_ns=stamp_ns, frame_id=LEFT_FRAME))
    return pipeline.on_right_info(make_info(tx=right_tx, stamp_ns=stamp_ns, frame_id=RIGHT_FRAME))


def _packed(stamp_ns: int = 1_000, frame_id: str = "rgbd_camera", left_encoding: str = "mono8",
            right_tx: float = -50.0) -> PackedStereoMessage:
    return PackedStereoMessage(
        stamp_ns=stamp_ns,
        frame_id=frame_id,
        left=make_image(left_encoding, stamp_ns=stamp_ns, frame_id=LEFT_FRAME),
        right=make_image("mono8", stamp_ns=stamp_ns, frame_id=RIGHT_FRAME),
        left_info=make_info(tx=0.0, stamp_ns=stamp_ns, frame_id=LEFT_FRAME),
        right_info=make_info(tx=right_tx, stamp_ns=stamp_ns, frame_id=RIGHT_FRAME),
    )


class TestFourStreamPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self.collector = _Collector()
        self.resolver = base_resolver()

    def _pipeline(self, **overrides) -> StereoOdometryInput:
        return create_stereo_input(StereoInputConfig(**overrides), self.resolver, self.collector)

    def test_rectified_mono_frame_is_emitted_once(self) -> None:
        pipeline = self._pipeline()
        frame = _feed_four(pipeline)
        self.assertIsInstance(frame, SensorFrame)
        self.assertEqual(self.collector.frames, [frame])
        self.assertAlmostEqual(frame.calibration.baseline, 0.1)
        self.assertEqual(frame.frame_id, BASE_FRAME)
        self.assertEqual(frame.source_frame_id, LEFT_FRAME)
        self.assertEqual(frame.stamp_ns, 1_000)
        self.assertEqual(frame.left.shape, (4, 6))
        self.assertFalse(frame.is_color)
        np.testing.assert_allclose(frame.calibration.local_transform.translation, [0.1, 0.0, 0.2])
        self.assertEqual(pipeline.stats.to_dict(),
                         {"received": 1, "emitted": 1, "paused_drops": 0, "errors": {}})

    def test_keep_color_bgr8_left_mono8_right(self) -> None:
        pipeline = self._pipeline(keep_color=True)
        frame = _feed_four(pipeline, left_encoding="bgr8", right_encoding="mono8")
        self.assertTrue(frame.is_color)
        self.assertEqual(frame.left.shape, (4, 6, 3))
        self.assertEqual(frame.left.dtype, np.uint8)
        self.assertEqual(frame.right.shape, (4, 6))
        self.assertEqual(frame.right.dtype, np.uint8)

    def test_keep_color_left_only(self) -> None:
        pipeline = self._pipeline(keep_color=True)
        frame = _feed_four(pipeline, left_encoding="bgr8", right_encoding="bgr8")
        self.assertTrue(frame.is_color)
        self.assertEqual(frame.left.shape, (4, 6, 3))
        self.assertEqual(frame.right.shape, (4, 6))

    def test_truncated_buffer_is_dropped(self) -> None:
        pipeline = self._pipeline()
        short = RawImageMessage(data=bytes(10), encoding="mono8", height=4, width=6, step=6,
                                stamp_ns=1_000, frame_id=LEFT_FRAME)
        pipeline.on_left_image(short)
        pipeline.on_right_image(make_image(stamp_ns=1_000, frame_id=RIGHT_FRAME))
        pipeline.on_left_info(make_info(tx=0.0, stamp_ns=1_000))
        with self.assertLogs(PROCESSOR_LOGGER, level=logging.ERROR) as logs:
            self.assertIsNone(pipeline.on_right_info(make_info(stamp_ns=1_000, frame_id=RIGHT_FRAME)))
        self.assertIn("data=10 bytes", logs.output[0])
        self.assertEqual(pipeline.stats.errors["MalformedImagePayload"], 1)
        self.assertEqual(self.collector.frames, [])
        # 다음 이벤트는 정상 처리
        self.assertIsNotNone(_feed_four(pipeline, stamp_ns=2_000))

    def test_unsupported_encoding_is_dropped(self) -> None:
        pipeline = self._pipeline()
        with self.assertLogs(PROCESSOR_LOGGER, level=logging.ERROR) as logs:
            self.assertIsNone(_feed_four(pipeline, right_encoding="32FC1"))
        self.assertIn("32FC1 (right)", logs.output[0])
        self.assertEqual(pipeline.stats.errors["UnsupportedEncoding"], 1)
        self.assertEqual(self.collector.frames, [])
        # 인코딩 오류는 TF 조회 전에 거부
        self.assertEqual(self.resolver.calls, [])

    def test_missing_reference_transform(self) -> None:
        pipeline = create_stereo_input(StereoInputConfig(frame_id="map"), self.resolver, self.collector)
        with self.assertLogs(PROCESSOR_LOGGER, level=logging.WARNING):
            self.assertIsNone(_feed_four(pipeline))
        self.assertEqual(pipeline.stats.errors["MissingReferenceTransform"], 1)
        self.assertEqual(self.resolver.calls, [("map", LEFT_FRAME, 1_000)])

    def test_unrectified_without_extrinsic_is_dropped(self) -> None:
        pipeline = self._pipeline(already_rectified=False)
        with self.assertLogs(PROCESSOR_LOGGER, level=logging.ERROR):
            self.assertIsNone(_feed_four(pipeline))
        self.assertEqual(pipeline.stats.errors["MissingExtrinsicTransform"], 1)
        self.assertEqual(self.resolver.calls[-1], (RIGHT_FRAME, LEFT_FRAME, 1_000))

    def test_unrectified_with_extrinsic(self) -> None:
        self.resolver.transforms[(RIGHT_FRAME, LEFT_FRAME)] = translation(-0.12)
        pipeline = self._pipeline(already_rectified=False)
        frame = _feed_four(pipeline, right_tx=0.0)
        self.assertAlmostEqual(frame.calibration.baseline, 0.12)

    def test_error_does_not_affect_next_event(self) -> None:
        pipeline = self._pipeline()
        self.assertIsNone(_feed_four(pipeline, stamp_ns=1_000, right_tx=0.0))
        self.assertIsNotNone(_feed_four(pipeline, stamp_ns=2_000))
        self.assertEqual(pipeline.stats.errors["NonPositiveBaseline"], 1)
        self.assertEqual(len(self.collector.frames), 1)

    def test_empty_payload(self) -> None:
        pipeline = self._pipeline()
        empty = RawImageMessage(data=b"", encoding="mono8", height=0, width=0, step=0,
                                stamp_ns=1_000, frame_id=LEFT_FRAME)
        pipeline.on_left_image(empty)
        pipeline.on_right_image(make_image(stamp_ns=1_000, frame_id=RIGHT_FRAME))
        pipeline.on_left_info(make_info(stamp_ns=1_000))
        with self.assertLogs(PROCESSOR_LOGGER, level=logging.WARNING) as logs:
            self.assertIsNone(pipeline.on_right_info(make_info(stamp_ns=1_000, frame_id=RIGHT_FRAME)))
        self.assertIn("empty", logs.output[0])
        self.assertEqual(pipeline.stats.errors["EmptyImagePayload"], 1)

    def test_pause_drops_events_until_resumed(self) -> None:
        pipeline = self._pipeline()
        pipeline.pause()
        self.assertTrue(pipeline.is_paused)
        self.assertIsNone(_feed_four(pipeline, stamp_ns=1_000))
        self.assertEqual(pipeline.stats.paused_drops, 1)
        self.assertEqual(self.resolver.calls, [])
        pipeline.resume()
        self.assertIsNotNone(_feed_four(pipeline, stamp_ns=2_000))
        self.assertEqual(pipeline.stats.received, 2)
        self.assertEqual(pipeline.stats.dropped, 1)

    def test_frames_are_emitted_in_arrival_order(self) -> None:
        pipeline = self._pipeline(approx_sync=True)
        for stamp in (1_000, 2_000, 3_000):
            _feed_four(pipeline, stamp_ns=stamp)
        self.assertEqual([f.stamp_ns for f in self.collector.frames], [1_000, 2_000, 3_000])

    def test_event_stamp_is_latest_image_stamp(self) -> None:
        pipeline = self._pipeline(approx_sync=True)
        pipeline.on_left_image(make_image(stamp_ns=1_000))
        pipeline.on_right_image(make_image(stamp_ns=1_004, frame_id=RIGHT_FRAME))
        pipeline.on_left_info(make_info(tx=0.0, stamp_ns=1_001))
        frame = pipeline.on_right_info(make_info(stamp_ns=1_002, frame_id=RIGHT_FRAME))
        self.assertEqual(frame.stamp_ns, 1_004)
        self.assertEqual(self.resolver.calls[0], (BASE_FRAME, LEFT_FRAME, 1_004))

    def test_rebuild_changes_policy(self) -> None:
        pipeline = self._pipeline()
        pipeline.on_left_image(make_image(stamp_ns=1_000))
        pipeline.rebuild(approx_sync=True, queue_size=3)
        self.assertEqual(pipeline.synchronizer.policy_name, "approx")
        self.assertTrue(pipeline.config.approx_sync)
        self.assertIn("approx sync", pipeline.subscribed_topics_message())
        self.assertIsNone(pipeline.on_right_image(make_image(stamp_ns=1_000, frame_id=RIGHT_FRAME)))

    def test_failed_rebuild_keeps_config(self) -> None:
        pipeline = self._pipeline()
        with self.assertRaises(ValueError):
            pipeline.rebuild(approx_sync=True, queue_size=0)
        self.assertEqual((pipeline.config.approx_sync, pipeline.config.queue_size), (False, 5))
        self.assertEqual((pipeline.synchronizer.approx_sync, pipeline.synchronizer.queue_size), (False, 5))
        self.assertIn("exact sync", pipeline.subscribed_topics_message())
        self.assertIsNotNone(_feed_four(pipeline))

    def test_packed_callback_rejected(self) -> None:
        with self.assertRaises(RuntimeError):
            self._pipeline().on_packed(_packed())


class TestPackedPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self.collector = _Collector()
        self.resolver = base_resolver()
        self.pipeline = create_stereo_input(
            StereoInputConfig(subscribe_rgbd=True), self.resolver, self.collector
        )

    def test_packed_frame(self) -> None:
        frame = self.pipeline.on_packed(_packed(stamp_ns=5_000))
        self.assertEqual(frame.frame_id, BASE_FRAME)
        self.assertEqual(frame.source_frame_id, "rgbd_camera")
        self.assertEqual(frame.stamp_ns, 5_000)
        self.assertAlmostEqual(frame.calibration.baseline, 0.1)
        self.assertEqual(self.collector.frames, [frame])

    def test_packed_fallback_uses_camera_info_frames(self) -> None:
        self.resolver.transforms[(LEFT_FRAME, RIGHT_FRAME)] = translation(0.07)
        frame = self.pipeline.on_packed(_packed(right_tx=0.0))
        self.assertAlmostEqual(frame.calibration.baseline, 0.07)
        self.assertIn((LEFT_FRAME, RIGHT_FRAME, 1_000), self.resolver.calls)

    def test_packed_keeps_color_from_left_encoding_only(self) -> None:
        pipeline = create_stereo_input(
            StereoInputConfig(subscribe_rgbd=True, keep_color=True), self.resolver, self.collector
        )
        frame = pipeline.on_packed(_packed(left_encoding="rgba8"))
        self.assertEqual(frame.left.shape, (4, 6, 3))
        self.assertEqual(frame.right.shape, (4, 6))

    def test_four_stream_callbacks_rejected(self) -> None:
        with self.assertRaises(RuntimeError):
            self.pipeline.on_left_image(make_image())

    def test_subscribed_topics_message(self) -> None:
        self.assertIn("/rgbd_image", self.pipeline.subscribed_topics_message())


if __name__ == "__main__":
    unittest.main()
