"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    ipwho IP [IP ...]               # 리전 자동 조회 후 귀속
    ipwho -r us-east-1 IP           # 지정 리전만 스캔 (다중 가능)
    ipwho -f json IP                # JSON 출력
    ipwho -v IP                     # 진단 메시지 출력
    ipwho --version                 # 버전 표시

Usage:
    $ ipwho 10.0.0.5 54.1.2.3 203.0.113.9
    $ python -m cli.app 10.0.0.5
"""

import ipaddress
import logging

import click
from botocore.exceptions import BotoCoreError
from rich.console import Console

from attribution import AttributionEngine, Reporter
from core.config import AttributionConfig, get_version
from core.exceptions import ConfigError, ValidationError, format_error_for_user

logger = logging.getLogger(__name__)

# botocore 노이즈 로그 제한
_NOISY_LOGGERS = (
    "botocore",
    "botocore.credentials",
    "botocore.httpchecksum",
    "botocore.loaders",
    "botocore.session",
    "urllib3",
)


def setup_logging(verbose: bool) -> None:
    """로깅 설정

    WARNING 레벨로 설정하여 INFO 로그가 도구 출력에 섞이지 않도록 하고,
    verbose면 DEBUG까지 출력합니다.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_addresses(values: tuple[str, ...]) -> tuple[list[str], list[str]]:
    """입력 값을 주소 목록으로 정규화

    쉼표/공백 구분 입력을 지원하며, 잘못된 주소는 따로 모읍니다.

    Returns:
        (유효한 주소, 잘못된 값) - 유효한 주소는 입력 순서, 중복 제거

    Raises:
        ValidationError: 유효한 주소가 하나도 없을 때
    """
    valid: list[str] = []
    invalid: list[str] = []

    for value in values:
        for token in value.replace(",", " ").split():
            try:
                valid.append(str(ipaddress.ip_address(token)))
            except ValueError:
                invalid.append(token)

    if not valid:
        raise ValidationError("유효한 IP 주소가 없습니다", invalid_values=invalid)

    return list(dict.fromkeys(valid)), invalid


@click.command(name="ipwho", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("addresses", nargs=-1, required=True)
@click.option("-r", "--region", "regions", multiple=True, help="스캔할 리전 (다중 가능, 생략 시 자동 조회)")
@click.option("-p", "--profile", default=None, help="AWS 프로파일 이름")
@click.option("-f", "--format", "fmt", type=click.Choice(["text", "json"]), default="text", show_default=True)
@click.option("-w", "--max-workers", type=click.IntRange(1, 100), default=None, help="동시 작업 수")
@click.option("--no-reverse-dns", is_flag=True, help="미해결 주소의 역방향 DNS 조회 생략")
@click.option("-v", "--verbose", is_flag=True, help="Never stop talking")
@click.version_option(get_version(), "-V", "--version", prog_name="ipwho")
def cli(
    addresses: tuple[str, ...],
    regions: tuple[str, ...],
    profile: str | None,
    fmt: str,
    max_workers: int | None,
    no_reverse_dns: bool,
    verbose: bool,
) -> None:
    """IP 주소를 소유한 AWS 리소스 또는 역방향 DNS 이름을 찾습니다."""
    err_console = Console(stderr=True)

    try:
        valid, invalid = parse_addresses(addresses)
    except ValidationError as e:
        raise click.BadParameter(f"{e.message}: {', '.join(e.invalid_values)}", param_hint="ADDRESSES") from e

    for value in invalid:
        err_console.print(f"[yellow]잘못된 IP 주소 무시: {value}[/yellow]", markup=True, highlight=False)

    try:
        config = AttributionConfig.from_env(
            max_workers=max_workers,
            verbose=verbose or None,
            profile=profile,
            reverse_dns=False if no_reverse_dns else None,
        )
    except ConfigError as e:
        raise click.ClickException(format_error_for_user(e)) from e

    # -v 플래그 또는 IPWHO_VERBOSE
    setup_logging(config.verbose)

    try:
        engine = AttributionEngine(config=config)
    except BotoCoreError as e:
        raise click.ClickException(format_error_for_user(e)) from e

    result = engine.run(valid, regions=list(regions) or None)
    Reporter(fmt=fmt, verbose=config.verbose).emit(result)


if __name__ == "__main__":
    cli()
