"""
tests/core/parallel/test_parallel_executor.py - ParallelExecutor 테스트
"""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from core.parallel.executor import ParallelConfig, ParallelExecutor, TaskSpec
from core.parallel.retry import RetryConfig
from core.parallel.types import ErrorCategory


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "test"}}, "DescribeInstances")


class TestParallelConfig:
    """ParallelConfig 테스트"""

    def test_default_values(self):
        """기본값 확인"""
        config = ParallelConfig()

        assert config.max_workers == 20
        assert config.retry_config is None

    def test_custom_values(self):
        """커스텀 값 설정"""
        retry_config = RetryConfig(max_retries=5)
        config = ParallelConfig(max_workers=30, retry_config=retry_config)

        assert config.max_workers == 30
        assert config.retry_config == retry_config

    def test_invalid_workers(self):
        """0 이하 워커 수 거부"""
        with pytest.raises(ValueError):
            ParallelConfig(max_workers=0)

    def test_workers_capped(self):
        """최대 100으로 제한"""
        assert ParallelConfig(max_workers=500).max_workers == 100


class TestParallelExecutor:
    """ParallelExecutor 테스트"""

    def test_empty_tasks(self):
        """빈 작업 목록"""
        result = ParallelExecutor().execute([])

        assert len(result.results) == 0

    def test_all_success(self):
        """모든 작업 성공"""
        tasks = [TaskSpec(identifier="eip", region=r, func=lambda r=r: r.upper()) for r in ("a", "b", "c")]
        result = ParallelExecutor(ParallelConfig(max_workers=2)).execute(tasks)

        assert result.success_count == 3
        assert sorted(r.data for r in result.results) == ["A", "B", "C"]

    def test_failure_isolated(self):
        """실패한 작업은 다른 작업에 영향 없음"""

        def fail():
            raise _client_error("AccessDenied")

        tasks = [
            TaskSpec(identifier="ok", region="us-east-1", func=lambda: 1),
            TaskSpec(identifier="bad", region="us-west-1", func=fail),
            TaskSpec(identifier="ok", region="us-west-1", func=lambda: 2),
        ]
        result = ParallelExecutor().execute(tasks)

        assert result.success_count == 2
        assert result.error_count == 1
        error = result.get_errors()[0]
        assert error.identifier == "bad"
        assert error.region == "us-west-1"
        assert error.category == ErrorCategory.ACCESS_DENIED
        assert error.error_code == "AccessDenied"
        assert error.retries == 0

    def test_waits_for_all_tasks(self):
        """느린 작업이 끝날 때까지 반환하지 않음"""
        finished = threading.Event()

        def slow():
            time.sleep(0.2)
            finished.set()
            return "slow"

        def fail():
            raise RuntimeError("fast failure")

        tasks = [
            TaskSpec(identifier="slow", region="r", func=slow),
            TaskSpec(identifier="fail", region="r", func=fail),
        ]
        result = ParallelExecutor().execute(tasks)

        assert finished.is_set()
        assert len(result.results) == 2

    @patch("core.parallel.executor.time.sleep")
    def test_retry_on_throttling(self, mock_sleep):
        """스로틀링은 재시도 후 성공"""
        attempts = {"count": 0}

        def flaky():
            attempts["count"] += 1
            if attempts["count"] < 3:
                raise _client_error("Throttling")
            return "done"

        executor = ParallelExecutor(ParallelConfig(retry_config=RetryConfig(max_retries=3)))
        result = executor.execute([TaskSpec(identifier="ec2", region="r", func=flaky)])

        assert result.success_count == 1
        assert attempts["count"] == 3
        assert mock_sleep.call_count == 2

    @patch("core.parallel.executor.time.sleep")
    def test_retries_exhausted(self, mock_sleep):
        """재시도 한도 초과 시 실패"""

        def always_throttled():
            raise _client_error("Throttling")

        executor = ParallelExecutor(ParallelConfig(retry_config=RetryConfig(max_retries=2)))
        result = executor.execute([TaskSpec(identifier="ec2", region="r", func=always_throttled)])

        error = result.get_errors()[0]
        assert error.category == ErrorCategory.THROTTLING
        assert error.retries == 2

    @patch("core.parallel.executor.time.sleep")
    def test_no_retry_for_access_denied(self, mock_sleep):
        """재시도 불가 에러는 즉시 실패"""
        func = MagicMock(side_effect=_client_error("UnauthorizedOperation"))

        result = ParallelExecutor().execute([TaskSpec(identifier="ec2", region="r", func=func)])

        assert result.error_count == 1
        assert func.call_count == 1
        mock_sleep.assert_not_called()

    def test_progress_tracker(self):
        """진행 추적기 호출"""
        tracker = MagicMock()
        tasks = [TaskSpec(identifier="t", region=str(i), func=lambda: None) for i in range(4)]

        ParallelExecutor().execute(tasks, progress_tracker=tracker)

        tracker.set_total.assert_called_once_with(4)
        assert tracker.on_complete.call_count == 4
