# stereo_calibration.py
"""
좌/우 CameraInfo(+ 선택적 카메라 간 TF)로부터 스테레오 캘리브레이션을 계산하는 모듈

처리 단계:
1) rectify 되지 않은 입력이면 두 카메라 사이 TF가 반드시 필요 (없거나 identity면 오류)
2) 초기 캘리브레이션 구성
    - rectified: baseline = -Tx / fx (오른쪽 camera_info의 P(0,3))
    - unrectified: baseline = 카메라 간 TF 이동 벡터의 크기
3) baseline이 0이고 rectified 라고 가정한 경우 TF에서 baseline 복원 (1회 경고)
4) rectified 인데 baseline <= 0 이면 오류
5) baseline > 10m 이면 1회 경고 (거부하지 않음)

주요 클래스:
- StereoCalibration: 왼쪽 카메라 내부 파라미터 + baseline + 기준 좌표계 대비 장착 변환
- StereoCalibrationResolver: 위 단계를 수행하며 1회성 경고 플래그를 인스턴스 단위로 보관
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from ..errors import DegenerateExtrinsicTransform, MissingExtrinsicTransform, NonPositiveBaseline
from .intrinsic_parameter import CameraIntrinsics
from .odometry import RigidTransform
from .transform_buffer import TransformResolver

LARGE_BASELINE_M = 10.0


@dataclass(frozen=True)
class StereoCalibration:
    fx: float
    fy: float
    cx: float
    cy: float
    image_size: Tuple[int, int]
    baseline: float
    local_transform: RigidTransform
    stereo_transform: Optional[RigidTransform] = None

    @classmethod
    def from_intrinsics(
        cls,
        left: CameraIntrinsics,
        right: CameraIntrinsics,
        local_transform: RigidTransform,
        stereo_transform: Optional[RigidTransform] = None,
    ) -> "StereoCalibration":
        if stereo_transform is None:
            baseline = right.stereo_baseline()
        else:
            baseline = float(np.linalg.norm(stereo_transform.translation))
        return cls(
            fx=left.fx,
            fy=left.fy,
            cx=left.cx,
            cy=left.cy,
            image_size=left.image_size,
            baseline=baseline,
            local_transform=local_transform,
            stereo_transform=stereo_transform,
        )

    def with_baseline(self, baseline: float) -> "StereoCalibration":
        return replace(self, baseline=float(baseline))

    def to_dict(self) -> dict:
        return {
            "fx": self.fx,
            "fy": self.fy,
            "cx": self.cx,
            "cy": self.cy,
            "width": self.image_size[0],
            "height": self.image_size[1],
            "baseline_m": self.baseline,
            "local_transform": self.local_transform.matrix.tolist(),
        }


class StereoCalibrationResolver:
    """
    스테레오 캘리브레이션 계산기

    Args:
        transform_resolver: 카메라 간 TF 조회에 사용
        logger: 경고 출력용 로거 (기본: 모듈 로거)
    """

    def __init__(self, transform_resolver: TransformResolver, logger: Optional[logging.Logger] = None):
        self.transform_resolver = transform_resolver
        self.logger = logger or logging.getLogger(__name__)
        # 1회성 경고 플래그 (인스턴스 수명 동안 리셋되지 않음)
        self.fallback_warned = False
        self.large_baseline_warned = False

    def resolve(
        self,
        left: CameraIntrinsics,
        right: CameraIntrinsics,
        local_transform: RigidTransform,
        already_rectified: bool,
        *,
        extrinsic_frames: Optional[Tuple[str, str]] = None,
        fallback_frames: Optional[Tuple[str, str]] = None,
        lookup_stamp_ns: Optional[int] = None,
    ) -> StereoCalibration:
        """
        Args:
            left, right: 좌/우 카메라 내부 파라미터
            local_transform: 기준 좌표계 → 왼쪽 카메라 변환
            already_rectified: 입력 영상이 이미 rectify 되었는지 여부
            extrinsic_frames: unrectified 일 때 조회할 (from, to) 프레임 (기본: 오른쪽 → 왼쪽)
            fallback_frames: baseline 복원용 (from, to) 프레임 (기본: 왼쪽 → 오른쪽)
            lookup_stamp_ns: TF 조회 시각 (기본: 왼쪽 camera_info의 stamp)

        Raises:
            MissingExtrinsicTransform, DegenerateExtrinsicTransform, NonPositiveBaseline
        """
        if extrinsic_frames is None:
            extrinsic_frames = (right.frame_id, left.frame_id)
        if fallback_frames is None:
            fallback_frames = (left.frame_id, right.frame_id)
        if lookup_stamp_ns is None:
            lookup_stamp_ns = left.stamp_ns

        stereo_transform = None
        if not already_rectified:
            stereo_transform = self.transform_resolver.lookup(*extrinsic_frames, lookup_stamp_ns)
            if stereo_transform is None:
                raise MissingExtrinsicTransform(*extrinsic_frames)
            if stereo_transform.is_identity():
                raise DegenerateExtrinsicTransform(*extrinsic_frames)

        calibration = StereoCalibration.from_intrinsics(left, right, local_transform, stereo_transform)

        if calibration.baseline == 0 and already_rectified:
            calibration = self._baseline_from_transform(calibration, fallback_frames, lookup_stamp_ns)

        if already_rectified and calibration.baseline <= 0:
            raise NonPositiveBaseline(calibration.baseline)

        if calibration.baseline > LARGE_BASELINE_M and not self.large_baseline_warned:
            self.logger.warning(
                f"Detected baseline ({calibration.baseline:f} m) is quite large! Is your right "
                "camera_info P(0,3) correctly set? Note that baseline=-P(0,3)/P(0,0). "
                "This warning is printed only once."
            )
            self.large_baseline_warned = True

        return calibration

    def _baseline_from_transform(
        self,
        calibration: StereoCalibration,
        fallback_frames: Tuple[str, str],
        stamp_ns: int,
    ) -> StereoCalibration:
        # 오른쪽 camera_info에 Tx가 없을 때 TF의 x 성분을 baseline으로 사용
        stereo_transform = self.transform_resolver.lookup(*fallback_frames, stamp_ns)
        if stereo_transform is None or stereo_transform.x <= 0:
            return calibration

        if not self.fallback_warned:
            self.logger.warning(
                "Right camera info doesn't have Tx set but we are assuming that stereo images "
                "are already rectified. While not recommended, we used TF to get the baseline "
                f"({fallback_frames[0]}->{fallback_frames[1]} = {stereo_transform.x:f}m) for "
                "convenience. It is preferred to feed a valid right camera info if stereo images "
                "are already rectified. This message is only printed once..."
            )
            self.fallback_warned = True
        return calibration.with_baseline(stereo_transform.x)
