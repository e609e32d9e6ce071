import asyncio
from contextlib import suppress

from momo_auth.infrastructure.outbox.dispatcher import OutboxDispatcher
from tests.fakes import FakeSmsOK


class _DispatcherWithFailingPoll(OutboxDispatcher):
    def __init__(self):
        super().__init__(pool=None, sms_adapter=FakeSmsOK(), poll_interval=0.01)
        self.polls = 0

    async def _process_once(self) -> int:
        self.polls += 1
        if self.polls == 1:
            raise ConnectionError("connection pool exhausted")
        return 0


async def test_run_forever_survives_a_failed_poll(caplog):
    dispatcher = _DispatcherWithFailingPoll()
    task = asyncio.create_task(dispatcher.run_forever())
    try:
        await asyncio.sleep(0.2)
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    assert dispatcher.polls > 1
    assert "outbox poll failed" in [r.getMessage() for r in caplog.records]
