"""
attribution/reporter.py - 귀속 결과 출력

입력 주소마다 정확히 하나의 행을 입력 순서대로 생성합니다.

- 귀속된 주소: {"ip", "type", "region", "id", "name"}
- 역방향 DNS 이름만 있는 주소: {"ip", "type": "unknown", "ptr"}
- 아무 정보도 없는 주소: {"ip", "type": "unknown"}
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape

from .types import AttributionResult, RecordKind

UNKNOWN = "unknown"

# 텍스트 출력 시 행 필드 순서
_TEXT_FIELDS = ("type", "region", "id", "name", "ptr")


def build_rows(result: AttributionResult) -> list[dict[str, Any]]:
    """결과를 출력 행 목록으로 변환

    Returns:
        result.addresses와 같은 순서/개수의 행
    """
    rows: list[dict[str, Any]] = []

    for address in result.addresses:
        record = result.record_for(address)
        if record is None:
            rows.append({"ip": address, "type": UNKNOWN})
        elif record.kind == RecordKind.REVERSE_DNS:
            if record.name:
                rows.append({"ip": address, "type": UNKNOWN, "ptr": record.name})
            else:
                rows.append({"ip": address, "type": UNKNOWN})
        else:
            rows.append(
                {
                    "ip": address,
                    "type": record.kind.value,
                    "region": record.region,
                    "id": record.resource_id,
                    "name": record.name,
                }
            )

    return rows


def render_text(rows: list[dict[str, Any]]) -> str:
    """행 목록을 들여쓰기 텍스트로 변환

    Example:
        10.0.0.5:
          type: instance
          region: us-east-1
          id: i-0123456789abcdef0
    """
    lines: list[str] = []
    for row in rows:
        lines.append(f"{row['ip']}:")
        for key in _TEXT_FIELDS:
            value = row.get(key)
            if value:
                lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def render_json(rows: list[dict[str, Any]]) -> str:
    """행 목록을 JSON 문자열로 변환 (None 필드 제외)"""
    compact = [{k: v for k, v in row.items() if v is not None} for row in rows]
    return json.dumps(compact, indent=2, ensure_ascii=False)


class Reporter:
    """귀속 결과 출력기

    Args:
        console: 출력 대상 rich Console (None이면 stdout)
        fmt: "text" 또는 "json"
        verbose: True면 실패 작업/진단 요약을 함께 출력
    """

    FORMATS = ("text", "json")

    def __init__(self, console: Console | None = None, fmt: str = "text", verbose: bool = False):
        if fmt not in self.FORMATS:
            raise ValueError(f"unsupported format: {fmt}")
        self.console = console or Console()
        self.fmt = fmt
        self.verbose = verbose

    def emit(self, result: AttributionResult) -> list[dict[str, Any]]:
        """결과 출력 후 출력한 행 반환"""
        rows = build_rows(result)
        body = render_json(rows) if self.fmt == "json" else render_text(rows)
        if body:
            self.console.print(body, markup=False, highlight=False, soft_wrap=True)

        if self.verbose:
            self._emit_diagnostics(result)
        return rows

    def _emit_diagnostics(self, result: AttributionResult) -> None:
        if result.region_fallback:
            regions = escape(", ".join(result.regions))
            self.console.print(f"[yellow]리전 목록 조회 실패, 기본 리전 사용: {regions}[/yellow]")
        if result.has_errors:
            self.console.print(f"[yellow]{escape(result.get_error_summary())}[/yellow]", highlight=False)
        if result.diagnostics:
            self.console.print(f"[dim]진단 {len(result.diagnostics)}건[/dim]")
            for diagnostic in result.diagnostics:
                self.console.print(f"[dim]  {escape(str(diagnostic))}[/dim]", highlight=False)
