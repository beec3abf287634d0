# odometry.py
"""
TF(geometry_msgs/Transform) 기반 강체 변환 표현 모듈

스테레오 입력 파이프라인에서 사용하는 좌표계 간 변환을 다음과 같이 다룸
1) 쿼터니언과 위치 벡터로부터 4x4 변환 행렬(T)을 구성
2) 역변환 / 합성 연산
3) identity 여부 판정 (두 카메라 프레임이 같은 위치인지 확인)

- 모든 계산은 4x4 동차 변환 행렬(float64) 단위로 수행
- "변환 없음(null)"은 None으로 표현하고, 이 모듈의 RigidTransform은 항상 유효한 값
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

# -------------------------------------------------------------
# 1) Quaternion ↔ Rotation Matrix 변환
# -------------------------------------------------------------
def quaternion_xyzw_to_rotation_matrix(quat_xyzw):
    """
    quaternion [x, y, z, w] → 3x3 rotation matrix 변환

    Args:
        quat_xyzw: [x, y, z, w] 순서의 quaternion (ROS 표준)
    Returns:
        Rm: 3x3 rotation matrix (numpy.ndarray)
    """
    x, y, z, w = (float(v) for v in quat_xyzw)
    norm = np.linalg.norm([x, y, z, w])
    if norm == 0.0:
        # TF가 초기화되지 않은 경우 (0,0,0,0) 쿼터니언이 들어올 수 있음
        return np.eye(3)
    x, y, z, w = x / norm, y / norm, z / norm, w / norm
    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z
    return np.array([
        [1 - 2 * (yy + zz),     2 * (xy - wz),         2 * (xz + wy)],
        [    2 * (xy + wz), 1 - 2 * (xx + zz),         2 * (yz - wx)],
        [    2 * (xz - wy),     2 * (yz + wx),     1 - 2 * (xx + yy)],
    ], dtype=np.float64)


def rotation_matrix_to_quaternion_xyzw(Rm):
    """3x3 회전 행렬을 quaternion [x, y, z, w] 리스트로 변환"""
    m00, m01, m02 = Rm[0, 0], Rm[0, 1], Rm[0, 2]
    m10, m11, m12 = Rm[1, 0], Rm[1, 1], Rm[1, 2]
    m20, m21, m22 = Rm[2, 0], Rm[2, 1], Rm[2, 2]
    trace = m00 + m11 + m22
    if trace > 0.0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m21 - m12) * s
        y = (m02 - m20) * s
        z = (m10 - m01) * s
    elif m00 > m11 and m00 > m22:
        s = 2.0 * np.sqrt(1.0 + m00 - m11 - m22)
        w = (m21 - m12) / s
        x = 0.25 * s
        y = (m01 + m10) / s
        z = (m02 + m20) / s
    elif m11 > m22:
        s = 2.0 * np.sqrt(1.0 + m11 - m00 - m22)
        w = (m02 - m20) / s
        x = (m01 + m10) / s
        y = 0.25 * s
        z = (m12 + m21) / s
    else:
        s = 2.0 * np.sqrt(1.0 + m22 - m00 - m11)
        w = (m10 - m01) / s
        x = (m02 + m20) / s
        y = (m12 + m21) / s
        z = 0.25 * s
    quat = np.array([x, y, z, w], dtype=np.float64)
    quat /= np.linalg.norm(quat) + 1e-12
    return quat.tolist()


# -------------------------------------------------------------
# 2) 4x4 변환 행렬 구성 및 역변환
# -------------------------------------------------------------
def pose_to_matrix(translation_vec, quat_xyzw):
    """
    translation_vec[x, y, z] & quaternion[x, y, z, w]
    -> 4x4 transformation matrix
    """
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = quaternion_xyzw_to_rotation_matrix(quat_xyzw)
    T[:3, 3] = np.asarray(translation_vec, dtype=np.float64)
    return T


def invert_transform(T):
    """
    4x4 transformation matrix의 역변환
    (회전 전치, 이동 벡터 부호 반전)
    """
    Rm = T[:3, :3]
    t = T[:3, 3]
    T_inv = np.eye(4, dtype=np.float64)
    T_inv[:3, :3] = Rm.T
    T_inv[:3, 3] = -Rm.T @ t
    return T_inv


# -------------------------------------------------------------
# 3) RigidTransform 값 객체
# -------------------------------------------------------------
@dataclass(frozen=True)
class RigidTransform:
    """
    두 좌표계 사이의 강체 변환 (4x4 동차 행렬)

    lookup(from_frame, to_frame)의 결과로 쓰일 때, matrix는 to_frame의 점을
    from_frame 좌표로 옮기는 변환(= from_frame에서 본 to_frame의 자세)이다.
    """

    matrix: np.ndarray

    def __post_init__(self):
        m = np.asarray(self.matrix, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError(f"RigidTransform expects a 4x4 matrix, got shape {m.shape}")
        m = m.copy()
        m.setflags(write=False)
        object.__setattr__(self, "matrix", m)

    @classmethod
    def identity(cls) -> "RigidTransform":
        return cls(np.eye(4, dtype=np.float64))

    @classmethod
    def from_translation_quaternion(
        cls,
        translation: Sequence[float],
        quat_xyzw: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
    ) -> "RigidTransform":
        return cls(pose_to_matrix(translation, quat_xyzw))

    @classmethod
    def from_ros(cls, transform) -> "RigidTransform":
        """geometry_msgs/Transform 메시지로부터 생성"""
        t = transform.translation
        q = transform.rotation
        return cls.from_translation_quaternion([t.x, t.y, t.z], [q.x, q.y, q.z, q.w])

    @property
    def x(self) -> float:
        return float(self.matrix[0, 3])

    @property
    def y(self) -> float:
        return float(self.matrix[1, 3])

    @property
    def z(self) -> float:
        return float(self.matrix[2, 3])

    @property
    def rotation(self) -> np.ndarray:
        return self.matrix[:3, :3]

    @property
    def translation(self) -> np.ndarray:
        return self.matrix[:3, 3]

    def quaternion_xyzw(self) -> list:
        return rotation_matrix_to_quaternion_xyzw(self.matrix[:3, :3])

    def is_identity(self, atol: float = 1e-9) -> bool:
        return bool(np.allclose(self.matrix, np.eye(4), atol=atol))

    def inverse(self) -> "RigidTransform":
        return RigidTransform(invert_transform(self.matrix))

    def __matmul__(self, other: "RigidTransform") -> "RigidTransform":
        return RigidTransform(self.matrix @ other.matrix)

    def pretty(self) -> str:
        qx, qy, qz, qw = self.quaternion_xyzw()
        return (f"xyz=[{self.x:.4f}, {self.y:.4f}, {self.z:.4f}] "
                f"quat=[{qx:.4f}, {qy:.4f}, {qz:.4f}, {qw:.4f}]")
