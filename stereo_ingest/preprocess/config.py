"""
config.yaml 로드

[config.yaml 구조]
    stereo_input:
        approx_sync: false
        queue_size: 5
        subscribe_rgbd: false
        keep_color: false
        already_rectified: true
        frame_id: base_link
        approx_sync_max_interval_ns: 0
    ros_topics:
        image_left: /stereo_camera/left/image_rect
        ...
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


@dataclass
class TopicConfig:
    image_left: str = "/stereo_camera/left/image_rect"
    image_right: str = "/stereo_camera/right/image_rect"
    camera_left_info: str = "/stereo_camera/left/camera_info"
    camera_right_info: str = "/stereo_camera/right/camera_info"
    rgbd_image: str = "/rgbd_image"
    tf: str = "/tf"
    tf_static: str = "/tf_static"


@dataclass
class StereoInputConfig:
    approx_sync: bool = False
    queue_size: int = 5
    subscribe_rgbd: bool = False
    keep_color: bool = False
    already_rectified: bool = True
    frame_id: str = "base_link"
    approx_sync_max_interval_ns: int = 0  # 0이면 제한 없음
    topics: TopicConfig = field(default_factory=TopicConfig)

    def __post_init__(self):
        if int(self.queue_size) < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")
        if int(self.approx_sync_max_interval_ns) < 0:
            raise ValueError(f"approx_sync_max_interval_ns must be >= 0, got {self.approx_sync_max_interval_ns}")
        if not self.frame_id:
            raise ValueError("frame_id must not be empty")
        self.queue_size = int(self.queue_size)
        self.approx_sync_max_interval_ns = int(self.approx_sync_max_interval_ns)

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "StereoInputConfig":
        section = dict(cfg.get("stereo_input") or {})
        known = {f.name for f in fields(cls)} - {"topics"}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown stereo_input options: {sorted(unknown)}")

        topic_section = dict(cfg.get("ros_topics") or {})
        topic_names = {f.name for f in fields(TopicConfig)}
        topics = TopicConfig(**{k: v for k, v in topic_section.items() if k in topic_names})
        return cls(topics=topics, **section)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Optional[Union[str, Path]] = "config.yaml") -> StereoInputConfig:
    """config.yaml을 읽어 StereoInputConfig 생성 (파일이 없으면 기본값)"""
    if config_path is None:
        return StereoInputConfig()
    path = Path(config_path)
    if not path.exists():
        return StereoInputConfig()
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    return StereoInputConfig.from_dict(cfg)
