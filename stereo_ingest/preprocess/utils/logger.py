"""
로깅 설정 유틸리티

Bag 재생 실행을 추적하기 위한 로깅 설정 함수를 제공
로그는 콘솔과 파일에 동시 출력되며, 파일명은 output 디렉토리 이름과 동기화
예: output/my_run → logs/my_run_20241030.log
"""

import logging
import re
import sys
import time
from pathlib import Path


def setup_logger(
    output_dir: Path,
    log_level: int = logging.INFO,
    log_dir: str = "logs"
) -> tuple[logging.Logger, Path]:
    """
    로거 설정 및 초기화

    Args:
        output_dir: 출력 디렉토리 경로 (로그 파일명 생성에 사용)
        log_level: 로그 레벨 (기본값: logging.INFO)
        log_dir: 로그 파일을 저장할 디렉토리 (기본값: "logs")

    Returns:
        tuple[logging.Logger, Path]: 설정된 로거와 로그 파일 경로
    """
    out_dir_name = Path(output_dir).name

    # 디렉토리 이름에 6자리 숫자(YYMMDD 형식)가 있으면 그대로 사용
    if re.search(r'\d{6}', out_dir_name):
        log_filename = f"{out_dir_name}.log"
    else:
        timestamp = time.strftime("%y%m%d")
        log_filename = f"{out_dir_name}_{timestamp}.log"

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / log_filename

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8', mode='w'),
            logging.StreamHandler(sys.stdout)
        ],
        force=True  # 기존 핸들러 제거 (중복 방지)
    )

    logger = logging.getLogger()

    logger.info("=" * 60)
    logger.info("STEREO REPLAY STARTED")
    logger.info(f"Output directory: {output_dir}")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 60)

    return logger, log_file


def log_summary(
    logger: logging.Logger,
    log_file: Path,
    out_dir: Path,
    stats: dict,
    total_time: float
):
    """
    재생 완료 후 요약 로그 출력

    Example:
        >>> stats = {
        ...     'total_left': 327,
        ...     'total_right': 327,
        ...     'received': 327,
        ...     'emitted': 320,
        ...     'errors': {'NonPositiveBaseline': 7},
        ...     'sync': 'approx',
        ...     'baseline_m': 0.12,
        ... }
        >>> log_summary(logger, log_file, out_dir, stats, 12.38)
    """
    logger.info("=" * 60)
    logger.info("REPLAY COMPLETE - SUMMARY")
    logger.info("=" * 60)

    if 'fx' in stats:
        logger.info(f"Resolution: {stats.get('width', 0)}x{stats.get('height', 0)}")
        logger.info(f"Intrinsics: fx={stats['fx']:.2f}, fy={stats.get('fy', 0):.2f}, "
                    f"cx={stats.get('cx', 0):.2f}, cy={stats.get('cy', 0):.2f}")
        logger.info(f"Stereo baseline: {stats.get('baseline_m', 0)} m")
    logger.info("-" * 20)

    logger.info(f"Input messages - left: {stats.get('total_left', 0)}, right: {stats.get('total_right', 0)}")
    logger.info(f"Synchronization: {stats.get('sync', 'n/a')}")
    logger.info(f"Synchronized events: {stats.get('received', 0)}")
    logger.info(f"Emitted frames: {stats.get('emitted', 0)}")
    if stats.get('paused_drops'):
        logger.info(f"Dropped while paused: {stats['paused_drops']}")
    for name, count in sorted(stats.get('errors', {}).items()):
        logger.info(f"Dropped ({name}): {count}")
    logger.info(f"Unmatched messages discarded by synchronizer: {stats.get('sync_dropped', 0)}")

    logger.info(f"Total time: {total_time:.2f}s")
    logger.info(f"Output directory: {out_dir}")
    logger.info(f"Log file saved: {log_file}")
    logger.info("=" * 60)
