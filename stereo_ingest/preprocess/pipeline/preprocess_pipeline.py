"""
ROS Bag 재생 파이프라인

rosbag2 기록을 메시지 순서대로 읽어 StereoOdometryInput에 흘려보낸다.
TF 수집 → 스테레오 이벤트 동기화/검증/캘리브레이션 → SensorFrame 전달 → 요약
"""

import json
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

from rosbags.highlevel import AnyReader
from rosbags.typesys import Stores, get_typestore
from tqdm import tqdm

from ..config import load_config
from ..sensor_module.intrinsic_parameter import check_rosbag_path, get_camera_parameter
from ..sensor_module.transform_buffer import TransformBuffer
from ..types import RawImageMessage, SensorFrame
from ..utils import log_summary, setup_logger
from .stereo_processor import StereoOdometryInput


class FrameRecorder:
    """
    다운스트림 consumer: 전달받은 프레임 수와 첫 캘리브레이션만 기록하고,
    추가 sink(예: Rerun)가 있으면 그대로 넘긴다.
    """

    def __init__(self, sinks: Optional[List[Callable[[SensorFrame], object]]] = None):
        self.sinks = list(sinks or [])
        self.count = 0
        self.first_calibration = None
        self.last_stamp_ns: Optional[int] = None
        self.out_of_order = 0

    def __call__(self, frame: SensorFrame) -> None:
        if self.first_calibration is None:
            self.first_calibration = frame.calibration
        if self.last_stamp_ns is not None and frame.stamp_ns < self.last_stamp_ns:
            self.out_of_order += 1
        self.last_stamp_ns = frame.stamp_ns
        self.count += 1
        for sink in self.sinks:
            sink(frame)


class BagReplayPipeline:
    """
    ROS Bag 재생 파이프라인

    Args:
        args: argparse.Namespace - bag_path, output_dir, config, rerun
    """

    def __init__(self, args):
        self.args = args
        self.start_time = time.time()

        self.bag_path = Path(args.bag_path)
        self.out_dir = Path(args.output_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)

        self.logger, self.log_file = setup_logger(self.out_dir)

        self.total_left = 0
        self.total_right = 0
        self.total_tf = 0
        self.replay_time = 0.0

        self.config = load_config(getattr(args, "config", "config.yaml"))
        self.tf_buffer = TransformBuffer()

        sinks = []
        if getattr(args, "rerun", False):
            # rerun은 시각화를 요청한 경우에만 로드
            from stereo_ingest.viewer.rerun_sink import RerunFrameSink
            sinks.append(RerunFrameSink(f"stereo_ingest_{self.out_dir.name}", spawn=True))
        self.recorder = FrameRecorder(sinks)

        self.processor = StereoOdometryInput(self.config, self.tf_buffer, self.recorder, logger=self.logger)
        self.logger.info(self.processor.subscribed_topics_message())

    def _topics(self) -> dict:
        t = self.config.topics
        handlers = {
            t.tf: self._on_tf,
            t.tf_static: self._on_tf_static,
        }
        if self.config.subscribe_rgbd:
            handlers[t.rgbd_image] = self.processor.on_packed
        else:
            handlers[t.image_left] = self._on_left_image
            handlers[t.image_right] = self._on_right_image
            handlers[t.camera_left_info] = self.processor.on_left_info
            handlers[t.camera_right_info] = self.processor.on_right_info
        return handlers

    def _on_tf(self, msg) -> None:
        self.total_tf += self.tf_buffer.add_tf_message(msg, static=False)

    def _on_tf_static(self, msg) -> None:
        self.total_tf += self.tf_buffer.add_tf_message(msg, static=True)

    def _on_left_image(self, msg) -> None:
        self.total_left += 1
        self.processor.on_left_image(RawImageMessage.from_ros(msg))

    def _on_right_image(self, msg) -> None:
        self.total_right += 1
        self.processor.on_right_image(RawImageMessage.from_ros(msg))

    def replay(self):
        """ROS Bag 메시지를 기록 순서대로 파이프라인에 전달"""
        if not check_rosbag_path(self.bag_path):
            raise FileNotFoundError(f"Invalid rosbag2 directory: {self.bag_path}")

        if not self.config.subscribe_rgbd:
            # 재생 전 왼쪽 camera_info 확인 (첫 메시지)
            intrinsics = get_camera_parameter(self.bag_path, self.config.topics.camera_left_info)
            if intrinsics is not None:
                self.logger.info(
                    f"Left camera: {intrinsics.width}x{intrinsics.height} fx={intrinsics.fx:.2f} "
                    f"fy={intrinsics.fy:.2f} cx={intrinsics.cx:.2f} cy={intrinsics.cy:.2f}"
                )

        handlers = self._topics()
        typestore = get_typestore(Stores.ROS2_FOXY)

        replay_start_time = time.time()
        self.logger.info("Starting bag replay...")

        with AnyReader([self.bag_path], default_typestore=typestore) as reader:
            conns = [c for c in reader.connections if c.topic in handlers]
            missing = set(handlers) - {c.topic for c in conns}
            for topic in sorted(missing):
                self.logger.warning(f"Topic not found in bag: {topic}")

            total_messages = sum(c.msgcount for c in conns)
            self.logger.info(f"Total messages to replay: {total_messages}")

            for conn, _, raw in tqdm(
                reader.messages(connections=conns),
                desc="Replaying stereo input",
                unit="msg",
                total=total_messages,
                file=sys.stderr,
                ncols=120,
                mininterval=0.5,
            ):
                msg = reader.deserialize(raw, conn.msgtype)
                handlers[conn.topic](msg)

        self.replay_time = time.time() - replay_start_time
        self.logger.info(f"Bag replay completed in {self.replay_time:.2f}s")

    def _save_metadata(self):
        """meta.json 저장 (설정, 첫 캘리브레이션, 통계)"""
        meta = {
            "config": self.config.to_dict(),
            "stats": self.processor.stats.to_dict(),
            "emitted_frames": self.recorder.count,
            "tf_transforms": self.total_tf,
        }
        if self.recorder.first_calibration is not None:
            meta["calibration"] = self.recorder.first_calibration.to_dict()
        with open(self.out_dir / "meta.json", "w", encoding="utf-8") as f:
            json.dump(meta, f, ensure_ascii=False, indent=2)
        self.logger.info(f"Metadata saved to {self.out_dir / 'meta.json'}")

    def generate_summary(self):
        stats = dict(self.processor.stats.to_dict())
        stats.update({
            "total_left": self.total_left,
            "total_right": self.total_right,
            "sync": "packed" if self.config.subscribe_rgbd else self.processor.synchronizer.policy_name,
            "sync_dropped": self.processor.synchronizer.dropped,
        })
        calibration = self.recorder.first_calibration
        if calibration is not None:
            stats.update(calibration.to_dict())
        if self.recorder.out_of_order:
            self.logger.warning(f"{self.recorder.out_of_order} frames were emitted out of timestamp order")
        log_summary(self.logger, self.log_file, self.out_dir, stats, time.time() - self.start_time)

    def run(self):
        """전체 파이프라인 실행"""
        try:
            # 1. Bag 재생
            self.replay()

            # 2. 메타데이터 저장
            self._save_metadata()

            # 3. 요약 생성
            self.generate_summary()

        except Exception as e:
            self.logger.error(f"Pipeline failed: {e}")
            raise

