# synchronizer.py
"""
독립적으로 발행되는 좌/우 영상 + camera_info 4개 스트림을 하나의 이벤트로 묶는 동기화기

정책:
- exact: 네 메시지의 timestamp(ns 정수)가 완전히 같을 때만 매칭
- approximate: 채널별 고정 길이 큐(queue_size)를 두고, 가장 늦은 head 시각(pivot)에
  가장 가까운 메시지들을 한 묶음으로 선택. 큐가 가득 차면 가장 오래된 메시지부터 버림

한 인스턴스에는 하나의 정책만 활성화되며, 정책/큐 길이 변경은 rebuild()로 상태를 통째로 교체한다.
"""

from __future__ import annotations

from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional, Tuple

LEFT_IMAGE = "left_image"
RIGHT_IMAGE = "right_image"
LEFT_INFO = "left_info"
RIGHT_INFO = "right_info"

CHANNELS = (LEFT_IMAGE, RIGHT_IMAGE, LEFT_INFO, RIGHT_INFO)


@dataclass(frozen=True)
class SyncedMessages:
    """동기화된 4개 메시지 묶음 (채널 순서 고정)"""

    left_image: Any
    right_image: Any
    left_info: Any
    right_info: Any


class _ExactPolicy:
    def __init__(self, queue_size: int):
        self.queue_size = queue_size
        self.pending: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        self.dropped = 0

    def add(self, channel: str, msg: Any, stamp_ns: int) -> Optional[Dict[str, Any]]:
        slot = self.pending.get(stamp_ns)
        if slot is None:
            slot = {}
            self.pending[stamp_ns] = slot
            self._evict()
            if stamp_ns not in self.pending:
                # 대기 중인 시각들보다 오래된 메시지
                self.dropped += 1
                return None
        if channel in slot:
            # 같은 시각에 같은 채널이 다시 들어오면 최신 메시지로 교체
            self.dropped += 1
        slot[channel] = msg

        if len(slot) < len(CHANNELS):
            return None

        # 매칭된 시각과 그 이전 미매칭 시각은 모두 폐기
        for stamp in list(self.pending):
            if stamp > stamp_ns:
                continue
            entries = self.pending.pop(stamp)
            if stamp != stamp_ns:
                self.dropped += len(entries)
        return slot

    def _evict(self) -> None:
        while len(self.pending) > self.queue_size:
            stamp = min(self.pending)
            self.dropped += len(self.pending.pop(stamp))

    def clear(self) -> None:
        self.pending.clear()


class _ApproximatePolicy:
    def __init__(self, queue_size: int, max_interval_ns: int = 0):
        self.queue_size = queue_size
        self.max_interval_ns = max_interval_ns
        self.queues: Dict[str, Deque[Tuple[int, Any]]] = {c: deque() for c in CHANNELS}
        self.dropped = 0

    def add(self, channel: str, msg: Any, stamp_ns: int) -> Optional[Dict[str, Any]]:
        queue = self.queues[channel]
        if len(queue) >= self.queue_size:
            queue.popleft()
            self.dropped += 1
        queue.append((stamp_ns, msg))
        return self._match()

    def _match(self) -> Optional[Dict[str, Any]]:
        while all(self.queues.values()):
            pivot = max(q[0][0] for q in self.queues.values())

            # 채널별로 pivot에 가장 가까운 메시지 선택 (동률이면 먼저 들어온 것)
            picks: Dict[str, int] = {}
            for c, q in self.queues.items():
                picks[c] = min(range(len(q)), key=lambda i: (abs(q[i][0] - pivot), i))

            stamps = [self.queues[c][i][0] for c, i in picks.items()]
            if self.max_interval_ns and max(stamps) - min(stamps) > self.max_interval_ns:
                # 허용 구간을 벗어나면 가장 오래된 head를 버리고 재시도
                oldest = min(self.queues, key=lambda c: self.queues[c][0][0])
                self.queues[oldest].popleft()
                self.dropped += 1
                continue

            group = {}
            for c, i in picks.items():
                q = self.queues[c]
                for _ in range(i):
                    q.popleft()
                    self.dropped += 1
                group[c] = q.popleft()[1]
            return group
        return None

    def clear(self) -> None:
        for q in self.queues.values():
            q.clear()


class FrameSynchronizer:
    """
    4채널 스트림 동기화기

    Args:
        approx_sync: True면 approximate 정책, False면 exact 정책
        queue_size: 동기화 큐 길이 (기본 5)
        max_interval_ns: approximate 정책에서 허용하는 최대 시각 차 (0이면 제한 없음)
    """

    def __init__(self, approx_sync: bool = False, queue_size: int = 5, max_interval_ns: int = 0):
        self.approx_sync = False
        self.queue_size = 0
        self.max_interval_ns = 0
        self.dropped_total = 0
        self._policy = None
        self.rebuild(approx_sync, queue_size, max_interval_ns)

    @property
    def policy_name(self) -> str:
        return "approx" if self.approx_sync else "exact"

    @property
    def dropped(self) -> int:
        return self.dropped_total + self._policy.dropped

    def rebuild(self, approx_sync: bool, queue_size: int, max_interval_ns: Optional[int] = None) -> None:
        """정책과 큐 상태를 새로 생성 (처리 중이던 미매칭 메시지는 모두 폐기)"""
        if int(queue_size) < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        if max_interval_ns is None:
            max_interval_ns = self.max_interval_ns
        if self._policy is not None:
            self.dropped_total += self._policy.dropped
        self.approx_sync = bool(approx_sync)
        self.queue_size = int(queue_size)
        self.max_interval_ns = int(max_interval_ns)
        if self.approx_sync:
            self._policy = _ApproximatePolicy(self.queue_size, self.max_interval_ns)
        else:
            self._policy = _ExactPolicy(self.queue_size)

    def add(self, channel: str, msg: Any, stamp_ns: int) -> Optional[SyncedMessages]:
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel}")
        group = self._policy.add(channel, msg, int(stamp_ns))
        if group is None:
            return None
        return SyncedMessages(
            left_image=group[LEFT_IMAGE],
            right_image=group[RIGHT_IMAGE],
            left_info=group[LEFT_INFO],
            right_info=group[RIGHT_INFO],
        )
