# image_encoding.py
"""
sensor_msgs/Image 인코딩 검증 및 픽셀 표현 정규화

1) EncodingValidator: 지원하는 7가지 인코딩인지 확인
2) decode_image: 메시지 버퍼(step 포함) → numpy 배열 (복사 없이 view)
3) ImageNormalizer: 다운스트림이 요구하는 형태로 변환
    - mono8 / 8UC1: 그대로 전달 (읽기 전용 view)
    - keep_color 이고 mono16이 아니면: 3채널 BGR
    - 그 외: 1채널 8bit grayscale

오른쪽 영상은 항상 grayscale로 정규화 (시각 기준 영상은 왼쪽만 사용)
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import cv2
import numpy as np

from ..errors import MalformedImagePayload, UnsupportedEncoding

if TYPE_CHECKING:
    from ..types import RawImageMessage

# -------------------------------------------------------------
# 지원 인코딩 (sensor_msgs/image_encodings 이름 그대로)
# -------------------------------------------------------------
TYPE_8UC1 = "8UC1"
MONO8 = "mono8"
MONO16 = "mono16"
BGR8 = "bgr8"
RGB8 = "rgb8"
BGRA8 = "bgra8"
RGBA8 = "rgba8"

SUPPORTED_ENCODINGS = frozenset({TYPE_8UC1, MONO8, MONO16, BGR8, RGB8, BGRA8, RGBA8})

# 인코딩 → (채널 수, dtype)
_LAYOUT = {
    TYPE_8UC1: (1, np.uint8),
    MONO8: (1, np.uint8),
    MONO16: (1, np.uint16),
    BGR8: (3, np.uint8),
    RGB8: (3, np.uint8),
    BGRA8: (4, np.uint8),
    RGBA8: (4, np.uint8),
}

# BGR 변환 코드 (BGR8은 변환 불필요)
_TO_BGR = {
    RGB8: cv2.COLOR_RGB2BGR,
    BGRA8: cv2.COLOR_BGRA2BGR,
    RGBA8: cv2.COLOR_RGBA2BGR,
}

# grayscale 변환 코드 (mono16은 스케일 변환으로 처리)
_TO_GRAY = {
    BGR8: cv2.COLOR_BGR2GRAY,
    RGB8: cv2.COLOR_RGB2GRAY,
    BGRA8: cv2.COLOR_BGRA2GRAY,
    RGBA8: cv2.COLOR_RGBA2GRAY,
}


def is_mono8(encoding: str) -> bool:
    return encoding in (TYPE_8UC1, MONO8)


class Validation(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class EncodingValidator:
    """인코딩 화이트리스트 검사기"""

    supported = SUPPORTED_ENCODINGS

    def validate(self, encoding: str) -> Validation:
        return Validation.ACCEPTED if encoding in self.supported else Validation.REJECTED

    def validate_pair(self, left_encoding: str, right_encoding: str) -> None:
        """좌/우 중 하나라도 지원하지 않으면 두 인코딩을 모두 담은 UnsupportedEncoding 발생"""
        if (self.validate(left_encoding) is Validation.REJECTED
                or self.validate(right_encoding) is Validation.REJECTED):
            raise UnsupportedEncoding(left_encoding, right_encoding)


# -------------------------------------------------------------
# 메시지 버퍼 → numpy
# -------------------------------------------------------------
def decode_image(image: "RawImageMessage") -> np.ndarray:
    """
    RawImageMessage 버퍼를 (H, W) 또는 (H, W, C) numpy 배열로 해석

    msg.step(한 행의 바이트 수)에 패딩이 있으면 잘라낸다.
    반환값은 원본 버퍼의 읽기 전용 view (mono16 big-endian만 예외적으로 복사).

    Raises:
        MalformedImagePayload: step이 한 행보다 짧거나 버퍼가 height * step보다 짧은 경우
    """
    if image.encoding not in _LAYOUT:
        raise ValueError(f"Unsupported encoding: {image.encoding}")
    ch, dtype = _LAYOUT[image.encoding]
    itemsize = np.dtype(dtype).itemsize

    if dtype is np.uint16:
        dt = np.dtype(">u2") if image.is_bigendian else np.dtype("<u2")
    else:
        dt = np.dtype(dtype)

    row_bytes = image.width * ch * itemsize
    step = image.step or row_bytes
    # 헤더(step, height)와 실제 버퍼 길이가 맞지 않으면 이 이벤트만 버림
    if step < row_bytes or step % itemsize or len(image.data) < image.height * step:
        raise MalformedImagePayload(image.frame_id, image.encoding, image.height,
                                    image.width, step, len(image.data))
    row_items = step // itemsize
    buf = np.frombuffer(image.data, dtype=dt, count=image.height * row_items)
    img = buf.reshape(image.height, row_items)[:, : image.width * ch]
    if ch > 1:
        img = img.reshape(image.height, image.width, ch)

    if dt.byteorder == ">":
        img = img.astype(np.uint16)
    return img


class ImageNormalizer:
    """다운스트림 추정기가 요구하는 픽셀 표현으로 변환"""

    # mono16 → mono8 스케일 (상위 8bit 사용)
    mono16_scale = 1.0 / 256.0

    def normalize(self, image: "RawImageMessage", keep_color: bool = False) -> np.ndarray:
        """
        Args:
            image: 인코딩 검증을 통과한 RawImageMessage
            keep_color: True면 컬러 입력을 BGR 3채널로 유지 (mono16 제외)

        Returns:
            (H, W) uint8 grayscale 또는 (H, W, 3) uint8 BGR
        """
        encoding = image.encoding
        img = decode_image(image)

        if is_mono8(encoding):
            return img

        if keep_color and encoding != MONO16:
            if encoding == BGR8:
                return img
            return cv2.cvtColor(img, _TO_BGR[encoding])

        if encoding == MONO16:
            return cv2.convertScaleAbs(img, alpha=self.mono16_scale)
        return cv2.cvtColor(img, _TO_GRAY[encoding])

    def normalize_pair(self, left: "RawImageMessage", right: "RawImageMessage",
                       keep_color: bool = False) -> tuple[np.ndarray, np.ndarray]:
        """왼쪽은 keep_color를 따르고, 오른쪽은 항상 grayscale"""
        return self.normalize(left, keep_color), self.normalize(right, keep_color=False)
