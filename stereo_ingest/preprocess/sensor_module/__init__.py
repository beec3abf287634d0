"""Sensor module package for per-camera preprocessing components.

이 패키지는 다음과 같은 하위 모듈을 포함

    - image_encoding: 인코딩 화이트리스트 검사 및 픽셀 표현 정규화
    - intrinsic_parameter: CameraInfo → CameraIntrinsics 변환
    - odometry: 쿼터니언/4x4 변환 행렬 연산과 RigidTransform
    - transform_buffer: TF 조회 인터페이스와 메모리 기반 TF 버퍼
    - stereo_calibration: 스테레오 캘리브레이션 계산 (baseline 복원/검증 포함)
"""

from .image_encoding import EncodingValidator, ImageNormalizer, SUPPORTED_ENCODINGS, Validation
from .intrinsic_parameter import CameraIntrinsics, get_camera_parameter, check_rosbag_path
from .odometry import RigidTransform
from .transform_buffer import TransformBuffer, TransformResolver
from .stereo_calibration import StereoCalibration, StereoCalibrationResolver

__all__ = [
    "EncodingValidator",
    "ImageNormalizer",
    "SUPPORTED_ENCODINGS",
    "Validation",
    "CameraIntrinsics",
    "get_camera_parameter",
    "check_rosbag_path",
    "RigidTransform",
    "TransformBuffer",
    "TransformResolver",
    "StereoCalibration",
    "StereoCalibrationResolver",
]
