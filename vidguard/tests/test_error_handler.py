import pytest

from vidguard.exceptions import ProviderException, ValidationException
from vidguard.utils.error_handler import convert_exceptions, handle_exceptions, log_exceptions


async def test_retry_succeeds_after_transient_failures():
    attempts = []

    @handle_exceptions(retries=3, exceptions=(ProviderException,), backoff_factor=0.0)
    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ProviderException("busy")
        return "ok"

    assert await flaky() == "ok"
    assert len(attempts) == 3


async def test_retry_ignores_unlisted_exceptions():
    attempts = []

    @handle_exceptions(retries=3, exceptions=(ProviderException,), backoff_factor=0.0)
    async def broken():
        attempts.append(1)
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await broken()
    assert len(attempts) == 1


async def test_convert_maps_library_errors_and_passes_ours_through():
    @convert_exceptions({OSError: ProviderException})
    async def disk_full():
        raise OSError("No space left on device")

    @convert_exceptions({OSError: ProviderException})
    async def bad_key():
        raise ValidationException("escapes root")

    with pytest.raises(ProviderException) as exc_info:
        await disk_full()
    assert exc_info.value.details == {"original_exception": "OSError"}
    assert isinstance(exc_info.value.__cause__, OSError)

    with pytest.raises(ValidationException):
        await bad_key()


async def test_log_exceptions_reraises():
    @log_exceptions(log_level="WARNING", include_traceback=False)
    async def fails():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await fails()
