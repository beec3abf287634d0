# transform_buffer.py
"""
TF 조회 인터페이스(TransformResolver)와 메모리 기반 구현(TransformBuffer)

- Bag 재생 시 /tf, /tf_static 메시지를 받아 프레임 그래프를 구성
- lookup(from_frame, to_frame, stamp_ns)는 from_frame에서 본 to_frame의 자세를 반환
  (to_frame의 점을 from_frame 좌표로 옮기는 변환)
- 조회 실패는 예외가 아니라 None으로 표현 (호출 측이 이벤트 단위로 처리)
"""

from __future__ import annotations

import bisect
from collections import deque
from typing import Dict, List, Optional, Protocol, Tuple

from .intrinsic_parameter import ns_from_header
from .odometry import RigidTransform


class TransformResolver(Protocol):
    """동기식 TF 조회. 변환을 구할 수 없으면 None"""

    def lookup(self, from_frame: str, to_frame: str, stamp_ns: int) -> Optional[RigidTransform]:
        ...


class _Edge:
    """parent → child 한 구간의 시간별 변환 샘플"""

    def __init__(self, static: bool):
        self.static = static
        self.stamps: List[int] = []
        self.transforms: List[RigidTransform] = []

    def insert(self, stamp_ns: int, transform: RigidTransform) -> None:
        if self.static:
            self.stamps = [stamp_ns]
            self.transforms = [transform]
            return
        i = bisect.bisect_left(self.stamps, stamp_ns)
        if i < len(self.stamps) and self.stamps[i] == stamp_ns:
            self.transforms[i] = transform
            return
        self.stamps.insert(i, stamp_ns)
        self.transforms.insert(i, transform)

    def trim(self, max_samples: int) -> None:
        overflow = len(self.stamps) - max_samples
        if overflow > 0:
            del self.stamps[:overflow]
            del self.transforms[:overflow]

    def sample(self, stamp_ns: int, max_extrapolation_ns: int) -> Optional[RigidTransform]:
        if self.static:
            return self.transforms[0]
        if not self.stamps:
            return None
        # 버퍼 범위를 너무 벗어난 시각은 조회 실패로 처리
        if stamp_ns < self.stamps[0] - max_extrapolation_ns or stamp_ns > self.stamps[-1] + max_extrapolation_ns:
            return None
        i = bisect.bisect_left(self.stamps, stamp_ns)
        if i == 0:
            return self.transforms[0]
        if i == len(self.stamps):
            return self.transforms[-1]
        before, after = self.stamps[i - 1], self.stamps[i]
        return self.transforms[i - 1] if stamp_ns - before <= after - stamp_ns else self.transforms[i]


class TransformBuffer:
    """
    메모리 기반 TF 버퍼

    Args:
        max_extrapolation_ns: 동적 변환 조회 시 버퍼 범위 밖으로 허용하는 시간 (기본 100ms)
        max_samples: 동적 구간당 보관하는 최대 샘플 수
    """

    def __init__(self, max_extrapolation_ns: int = 100_000_000, max_samples: int = 1000):
        self.max_extrapolation_ns = int(max_extrapolation_ns)
        self.max_samples = int(max_samples)
        self._edges: Dict[Tuple[str, str], _Edge] = {}
        self._neighbors: Dict[str, set] = {}

    @property
    def frames(self) -> set:
        return set(self._neighbors)

    def add_transform(self, parent: str, child: str, stamp_ns: int,
                      transform: RigidTransform, static: bool = False) -> None:
        """parent에서 본 child의 자세(T_parent_child)를 등록"""
        parent, child = parent.lstrip("/"), child.lstrip("/")
        edge = self._edges.get((parent, child))
        if edge is None:
            edge = _Edge(static)
            self._edges[(parent, child)] = edge
            self._neighbors.setdefault(parent, set()).add(child)
            self._neighbors.setdefault(child, set()).add(parent)
        edge.insert(int(stamp_ns), transform)
        edge.trim(self.max_samples)

    def add_tf_message(self, msg, static: bool = False) -> int:
        """tf2_msgs/TFMessage의 모든 TransformStamped를 등록하고 개수를 반환"""
        for tf in msg.transforms:
            self.add_transform(
                tf.header.frame_id,
                tf.child_frame_id,
                ns_from_header(tf.header),
                RigidTransform.from_ros(tf.transform),
                static=static,
            )
        return len(msg.transforms)

    def _edge_transform(self, a: str, b: str, stamp_ns: int) -> Optional[RigidTransform]:
        # a에서 본 b의 자세
        edge = self._edges.get((a, b))
        if edge is not None:
            return edge.sample(stamp_ns, self.max_extrapolation_ns)
        edge = self._edges.get((b, a))
        if edge is not None:
            t = edge.sample(stamp_ns, self.max_extrapolation_ns)
            return t.inverse() if t is not None else None
        return None

    def _path(self, start: str, goal: str) -> Optional[List[str]]:
        # 프레임 그래프 BFS
        prev: Dict[str, Optional[str]] = {start: None}
        queue = deque([start])
        while queue:
            node = queue.popleft()
            if node == goal:
                path = [node]
                while prev[path[-1]] is not None:
                    path.append(prev[path[-1]])
                return path[::-1]
            for nxt in self._neighbors.get(node, ()):
                if nxt not in prev:
                    prev[nxt] = node
                    queue.append(nxt)
        return None

    def lookup(self, from_frame: str, to_frame: str, stamp_ns: int) -> Optional[RigidTransform]:
        from_frame, to_frame = from_frame.lstrip("/"), to_frame.lstrip("/")
        if not from_frame or not to_frame:
            return None
        if from_frame == to_frame:
            return RigidTransform.identity()

        path = self._path(from_frame, to_frame)
        if path is None:
            return None

        result = RigidTransform.identity()
        for a, b in zip(path[:-1], path[1:]):
            step = self._edge_transform(a, b, stamp_ns)
            if step is None:
                return None
            result = result @ step
        return result
