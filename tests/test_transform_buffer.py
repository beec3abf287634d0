"""단위 테스트: 강체 변환과 메모리 TF 버퍼."""

from __future__ import annotations

import unittest
from types import SimpleNamespace

import numpy as np

from stereo_ingest.preprocess.sensor_module.odometry import RigidTransform
from stereo_ingest.preprocess.sensor_module.transform_buffer import TransformBuffer

from stereo_fixtures import translation

# z축 90도 회전
QUAT_Z90 = [0.0, 0.0, np.sqrt(0.5), np.sqrt(0.5)]


def _tf_stamped(parent, child, sec, xyz, quat=(0.0, 0.0, 0.0, 1.0)):
    return SimpleNamespace(
        header=SimpleNamespace(stamp=SimpleNamespace(sec=sec, nanosec=0), frame_id=parent),
        child_frame_id=child,
        transform=SimpleNamespace(
            translation=SimpleNamespace(x=xyz[0], y=xyz[1], z=xyz[2]),
            rotation=SimpleNamespace(x=quat[0], y=quat[1], z=quat[2], w=quat[3]),
        ),
    )


class TestRigidTransform(unittest.TestCase):
    def test_matrix_is_read_only_copy(self) -> None:
        m = np.eye(4)
        t = RigidTransform(m)
        m[0, 3] = 5.0
        self.assertEqual(t.x, 0.0)
        self.assertFalse(t.matrix.flags.writeable)

    def test_rejects_bad_shape(self) -> None:
        with self.assertRaises(ValueError):
            RigidTransform(np.eye(3))

    def test_inverse_and_compose(self) -> None:
        t = RigidTransform.from_translation_quaternion([1.0, 2.0, 3.0], QUAT_Z90)
        self.assertTrue((t @ t.inverse()).is_identity())
        self.assertFalse(t.is_identity())
        np.testing.assert_allclose(t.quaternion_xyzw(), QUAT_Z90, atol=1e-9)

    def test_from_ros(self) -> None:
        msg = _tf_stamped("a", "b", 0, (0.5, 0.0, -1.0)).transform
        t = RigidTransform.from_ros(msg)
        self.assertEqual((t.x, t.y, t.z), (0.5, 0.0, -1.0))
        self.assertIn("xyz=[0.5000", t.pretty())


class TestTransformBuffer(unittest.TestCase):
    def setUp(self) -> None:
        self.buffer = TransformBuffer(max_extrapolation_ns=100)
        self.buffer.add_transform("base_link", "camera_link", 0, translation(0.1), static=True)
        self.buffer.add_transform("camera_link", "left", 0, translation(0.0, 0.06), static=True)
        self.buffer.add_transform("camera_link", "right", 0, translation(0.0, -0.06), static=True)

    def test_same_frame_is_identity(self) -> None:
        self.assertTrue(self.buffer.lookup("left", "left", 0).is_identity())

    def test_chain_lookup(self) -> None:
        t = self.buffer.lookup("base_link", "left", 123)
        np.testing.assert_allclose(t.translation, [0.1, 0.06, 0.0])

    def test_lookup_across_siblings_uses_inverse(self) -> None:
        t = self.buffer.lookup("left", "right", 0)
        np.testing.assert_allclose(t.translation, [0.0, -0.12, 0.0], atol=1e-12)
        back = self.buffer.lookup("right", "left", 0)
        self.assertTrue((t @ back).is_identity())

    def test_unknown_or_empty_frame(self) -> None:
        self.assertIsNone(self.buffer.lookup("base_link", "map", 0))
        self.assertIsNone(self.buffer.lookup("", "left", 0))

    def test_leading_slash_is_ignored(self) -> None:
        self.assertIsNotNone(self.buffer.lookup("/base_link", "left", 0))

    def test_dynamic_nearest_sample_and_extrapolation_limit(self) -> None:
        self.buffer.add_transform("odom", "base_link", 1_000, translation(1.0))
        self.buffer.add_transform("odom", "base_link", 2_000, translation(2.0))
        self.assertAlmostEqual(self.buffer.lookup("odom", "base_link", 1_400).x, 1.0)
        self.assertAlmostEqual(self.buffer.lookup("odom", "base_link", 1_600).x, 2.0)
        self.assertAlmostEqual(self.buffer.lookup("odom", "base_link", 2_100).x, 2.0)
        self.assertIsNone(self.buffer.lookup("odom", "base_link", 2_101))
        self.assertIsNone(self.buffer.lookup("odom", "left", 500))

    def test_max_samples(self) -> None:
        buffer = TransformBuffer(max_extrapolation_ns=0, max_samples=2)
        for stamp in (1, 2, 3):
            buffer.add_transform("odom", "base_link", stamp, translation(stamp))
        self.assertIsNone(buffer.lookup("odom", "base_link", 1))
        self.assertAlmostEqual(buffer.lookup("odom", "base_link", 3).x, 3.0)

    def test_add_tf_message(self) -> None:
        buffer = TransformBuffer()
        msg = SimpleNamespace(transforms=[
            _tf_stamped("base_link", "left", 1, (0.0, 0.06, 0.0)),
            _tf_stamped("left", "right", 1, (0.12, 0.0, 0.0), QUAT_Z90),
        ])
        self.assertEqual(buffer.add_tf_message(msg, static=True), 2)
        self.assertEqual(buffer.frames, {"base_link", "left", "right"})
        self.assertAlmostEqual(buffer.lookup("left", "right", 0).x, 0.12)


if __name__ == "__main__":
    unittest.main()
