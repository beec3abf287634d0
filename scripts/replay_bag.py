# replay_bag.py
"""
ROS2 Bag 스테레오 입력 재생 스크립트 - 클래스 기반 구조

BagReplayPipeline 클래스를 사용하여 좌/우 영상 + camera_info(또는 packed 메시지)를
동기화하고, 스테레오 캘리브레이션을 계산한 SensorFrame을 생성

[기본 사용법]
    uv run -- python scripts/replay_bag.py <bag_path> --output-dir <output_directory>

[예제]
    # config.yaml 설정으로 재생
    uv run -- python scripts/replay_bag.py data/rosbag2_5 --output-dir output/251107_stereo

    # 다른 설정 파일 + Rerun 시각화
    uv run -- python scripts/replay_bag.py data/rosbag2_5 --output-dir output/stereo_rr --config configs/d435.yaml --rerun

[주요 옵션]
    bag_path          : ROS2 bag 파일 경로 (필수)
    --output-dir      : 출력 디렉토리 경로 (필수!)
    --config          : 설정 파일 경로 (기본값: config.yaml)
    --rerun           : 생성된 프레임을 Rerun 뷰어로 시각화

[출력 파일]
    - meta.json                    : 설정, 첫 스테레오 캘리브레이션, 처리 통계
    - logs/<output_dir_name>_*.log : 실행 로그

[요구사항]
    - autorootcwd 패키지 필요
    - config.yaml에 stereo_input / ros_topics 설정 필요
"""

import autorootcwd  # noqa: F401
import argparse

from stereo_ingest.preprocess.pipeline.preprocess_pipeline import BagReplayPipeline


def parse_arguments():
    """명령행 인자 파싱"""
    ap = argparse.ArgumentParser(
        description="Rosbag → synchronized stereo frames - Class-based Pipeline"
    )
    ap.add_argument("bag_path", type=str, help="ROS2 bag 파일 경로")
    ap.add_argument(
        "--output-dir",
        type=str,
        required=True,
        help="출력 디렉토리 경로"
    )
    ap.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    ap.add_argument(
        "--rerun",
        action="store_true",
        help="생성된 스테레오 프레임을 Rerun으로 시각화"
    )

    return ap.parse_args()


def main():
    args = parse_arguments()

    pipeline = BagReplayPipeline(args)
    pipeline.run()

    print("\nReplay completed successfully!")
    print(f"Output directory: {args.output_dir}")


if __name__ == "__main__":
    main()
