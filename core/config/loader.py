"""
설정 로더

config/settings.yaml 로드 및 애플리케이션 설정 생성.
파일이 없으면 core.constants 기본값 사용.

settings.yaml 예시:
    storage:
      snapshot_path: data/capital_p2p.json
    rates:
      buy_rate: "36.5"
      sell_rate: "37.0"
      stablecoin_rate_mode: AUTO
      manual_stablecoin_rate: "37.0"
    logging:
      level: INFO
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.domain.errors import EntityValidationError
from core.domain.models import RateSettings


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정

    불변 데이터 구조로 설정 변경 방지
    """

    snapshot_path: Path
    default_rates: RateSettings
    log_level: str


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigLoadError(f"settings.yaml의 '{key}' 섹션은 매핑이어야 합니다")
    return value


def _resolve_path(value: str | None) -> Path:
    if not value:
        return Paths.SNAPSHOT_FILE
    path = Path(value)
    # 상대 경로는 프로젝트 루트 기준
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스 (파일이 없으면 기본값)

    Raises:
        ConfigLoadError: 형식이 잘못되었거나 값이 유효하지 않은 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    data: dict[str, Any] = {}
    if path.exists():
        try:
            content = path.read_text(encoding="utf-8")
            loaded = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")
            data = loaded

    storage = _section(data, "storage")
    rates = _section(data, "rates")
    log_config = _section(data, "logging")

    try:
        default_rates = RateSettings(
            buy_rate=rates.get("buy_rate", Defaults.BUY_RATE),
            sell_rate=rates.get("sell_rate", Defaults.SELL_RATE),
            stablecoin_rate_mode=rates.get("stablecoin_rate_mode", Defaults.STABLECOIN_RATE_MODE),
            manual_stablecoin_rate=rates.get(
                "manual_stablecoin_rate", Defaults.MANUAL_STABLECOIN_RATE
            ),
        )
    except EntityValidationError as e:
        raise ConfigLoadError(f"settings.yaml의 rates 값이 유효하지 않습니다: {e}") from e

    log_level = str(log_config.get("level", Defaults.LOG_LEVEL)).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigLoadError(f"유효하지 않은 로그 레벨입니다: '{log_level}'")

    return AppConfig(
        snapshot_path=_resolve_path(storage.get("snapshot_path")),
        default_rates=default_rates,
        log_level=log_level,
    )


class Config:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Config | None" = None
    _config: AppConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(config_path)

    @property
    def snapshot_path(self) -> Path:
        """스냅샷 파일 경로"""
        assert self._config is not None
        return self._config.snapshot_path

    @property
    def default_rates(self) -> RateSettings:
        """신규 스냅샷 환율 기본값"""
        assert self._config is not None
        return self._config.default_rates

    @property
    def log_level(self) -> str:
        """로그 레벨 이름"""
        assert self._config is not None
        return self._config.log_level

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_config(config_path: Path | None = None) -> Config:
    """Config 인스턴스 반환

    Args:
        config_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Config 싱글턴 인스턴스
    """
    return Config(config_path)
