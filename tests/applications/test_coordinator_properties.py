"""Property-based tests for optimistic updates.

Feature: application-pipeline

Properties:
- Rollback identity: a failed write leaves the local collection exactly as
  it was before the call.
- Event accounting: a committed stage change appends exactly one event
  carrying the new stage; a rolled-back one appends none.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

import asyncio

from hypothesis import HealthCheck, given, settings, strategies as st

from src.applications.remote.errors import RemoteStoreError
from src.applications.stages.models import ApplicationStage
from src.applications.sync import (
    ApplicationStore,
    CollectionReader,
    NotesMutation,
    OptimisticUpdateCoordinator,
    RemovalMutation,
    StageMutation,
)


def run_async(coro):
    return asyncio.run(coro)


stages = st.sampled_from(list(ApplicationStage))

mutations = st.one_of(
    stages.map(StageMutation),
    st.text(max_size=40).map(NotesMutation),
    st.just(RemovalMutation()),
)

_FAILING_METHOD = {
    "stage": "update_stage",
    "notes": "update_notes",
    "removal": "remove_application",
}


def _silent(_notification):
    pass


class TestRollbackIdentity:

    @settings(
        max_examples=100,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(
        initial=stages,
        mutation=mutations,
        notes=st.one_of(st.none(), st.text(min_size=1, max_size=20)),
    )
    def test_failed_write_restores_exact_state(
        self, remote_factory, application_factory, initial, mutation, notes
    ):
        remote = remote_factory(
            [
                application_factory("app-1", initial, notes=notes),
                application_factory("app-2", ApplicationStage.RESPONDED, age_minutes=3),
            ]
        )

        async def scenario():
            store = ApplicationStore()
            reader = CollectionReader(remote, store)
            coordinator = OptimisticUpdateCoordinator(
                remote, store, reader, notifier=_silent
            )
            await reader.refresh()
            before = store.snapshot()
            remote.fail(_FAILING_METHOD[mutation.name], RemoteStoreError("down"))
            result = await coordinator.apply("app-1", mutation)
            return before, store.snapshot(), result

        before, after, result = run_async(scenario())

        assert not result.committed
        assert after == before


class TestEventAccounting:

    @settings(
        max_examples=100,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(initial=stages, target=stages, fails=st.booleans())
    def test_one_event_per_committed_stage_change(
        self, remote_factory, application_factory, initial, target, fails
    ):
        remote = remote_factory([application_factory("app-1", initial)])

        async def scenario():
            store = ApplicationStore()
            reader = CollectionReader(remote, store)
            coordinator = OptimisticUpdateCoordinator(
                remote, store, reader, notifier=_silent
            )
            await reader.refresh()
            if fails:
                remote.fail("update_stage", RemoteStoreError("down"))
            return await coordinator.apply("app-1", StageMutation(target))

        result = run_async(scenario())
        events = remote.stored_events("app-1")

        if fails:
            assert not result.committed
            assert events == []
        else:
            assert result.committed
            assert len(events) == 1
            assert events[0].stage == target
            assert events[0].notes == f"Moved to {target.value}"
