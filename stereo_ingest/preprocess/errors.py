"""
스테레오 입력 파이프라인 예외 정의

모든 예외는 "현재 이벤트"에만 국한됨: 파이프라인은 예외를 잡아 로그를 남기고
해당 이벤트만 버린 뒤 다음 이벤트를 독립적으로 처리한다.
"""


class StereoInputError(RuntimeError):
    """이벤트 단위로 처리되는 모든 입력 오류의 기본 클래스"""


class UnsupportedEncoding(StereoInputError):
    def __init__(self, left_encoding: str, right_encoding: str):
        self.left_encoding = left_encoding
        self.right_encoding = right_encoding
        super().__init__(
            "Input type must be image=mono8,mono16,rgb8,bgr8,rgba8,bgra8 (mono8 recommended), "
            f"received types are {left_encoding} (left) and {right_encoding} (right)"
        )


class MissingExtrinsicTransform(StereoInputError):
    def __init__(self, from_frame: str, to_frame: str):
        self.from_frame = from_frame
        self.to_frame = to_frame
        super().__init__(
            "Images are not rectified but we cannot get TF between the two cameras! "
            f"(between frames {from_frame} and {to_frame})"
        )


class DegenerateExtrinsicTransform(StereoInputError):
    def __init__(self, from_frame: str, to_frame: str):
        self.from_frame = from_frame
        self.to_frame = to_frame
        super().__init__(
            "Images are not rectified but we cannot get a valid TF between the two cameras! "
            f"Identity transform returned between {from_frame} and {to_frame}."
        )


class NonPositiveBaseline(StereoInputError):
    def __init__(self, baseline: float):
        self.baseline = baseline
        super().__init__(
            f"The stereo baseline ({baseline:f}) should be positive (baseline=-Tx/fx). "
            "We assume a horizontal left/right stereo setup where the Tx (or P(0,3)) "
            "is negative in the right camera info msg."
        )


class EmptyImagePayload(StereoInputError):
    def __init__(self, left_size: int, right_size: int):
        self.left_size = left_size
        self.right_size = right_size
        super().__init__(f"Input images empty?! (left={left_size} bytes, right={right_size} bytes)")


class MissingReferenceTransform(StereoInputError):
    def __init__(self, reference_frame: str, camera_frame: str, stamp_ns: int):
        self.reference_frame = reference_frame
        self.camera_frame = camera_frame
        self.stamp_ns = stamp_ns
        super().__init__(
            f"Cannot get transform from {reference_frame} to {camera_frame} at stamp {stamp_ns} ns"
        )


class MalformedImagePayload(StereoInputError):
    def __init__(self, frame_id: str, encoding: str, height: int, width: int, step: int, data_size: int):
        self.frame_id = frame_id
        self.encoding = encoding
        self.data_size = data_size
        super().__init__(
            f"Image buffer does not match its header (frame {frame_id}, encoding {encoding}, "
            f"{width}x{height}, step={step}, data={data_size} bytes)"
        )
