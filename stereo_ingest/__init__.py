"""
stereo_ingest - 스테레오 시각 오도메트리 입력 전처리 패키지

좌/우 영상 + camera_info 스트림(또는 packed 메시지)을 동기화하고,
인코딩 검증 / 스테레오 캘리브레이션 계산 / 픽셀 정규화를 거쳐
다운스트림 추정기로 SensorFrame을 전달한다.

필요한 모듈은 직접 import하세요. 예: from stereo_ingest.preprocess.pipeline import create_stereo_input
"""

# rerun 같은 시각화 의존성은 필요할 때만 로드되도록 __init__는 비워 둠
