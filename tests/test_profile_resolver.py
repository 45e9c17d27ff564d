"""Tests for profile resolution."""

import asyncio

import pytest

from campus_hub.domain.auth import AuthEvent
from campus_hub.domain.profiles import ProfileStatus
from campus_hub.errors import ProfileFetchTimeout, ProfileFetchTransient
from campus_hub.services.profiles import ProfileResolver
from campus_hub.services.session_store import SessionStore
from tests.conftest import (
    FakeIdentityProvider,
    InMemoryProfileRepository,
    make_profile,
    make_session,
)


async def _wired(
    provider: FakeIdentityProvider,
    repository: InMemoryProfileRepository,
    timeout_seconds: float = 10.0,
) -> tuple[SessionStore, ProfileResolver]:
    store = SessionStore(provider)
    resolver = ProfileResolver(repository, timeout_seconds=timeout_seconds)
    store.subscribe(resolver.handle_session)
    store.on_sign_out(resolver.clear)
    await store.start()
    return store, resolver


def test_concurrent_resolves_share_one_fetch() -> None:
    repository = InMemoryProfileRepository(profiles={"subject-1": make_profile()})

    async def run() -> list:
        gate = asyncio.Event()
        repository.gates["subject-1"] = gate
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()), repository
        )
        pending = asyncio.gather(*(resolver.resolve("subject-1") for _ in range(5)))
        await asyncio.sleep(0)
        gate.set()
        return await pending

    profiles = asyncio.run(run())

    assert repository.calls == {"subject-1": 1}
    assert all(profile == make_profile() for profile in profiles)


def test_session_drives_state_to_ready() -> None:
    repository = InMemoryProfileRepository(profiles={"subject-1": make_profile()})

    async def run() -> ProfileResolver:
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()), repository
        )
        assert resolver.state.loading
        await resolver.resolve("subject-1")
        await asyncio.sleep(0)
        return resolver

    resolver = asyncio.run(run())

    assert resolver.state.status is ProfileStatus.READY
    assert resolver.state.profile == make_profile()


def test_missing_profile_is_not_found() -> None:
    repository = InMemoryProfileRepository()

    async def run() -> tuple[object, ProfileResolver]:
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()), repository
        )
        profile = await resolver.resolve("subject-1")
        await asyncio.sleep(0)
        return profile, resolver

    profile, resolver = asyncio.run(run())

    assert profile is None
    assert resolver.state.not_found


def test_stale_response_is_discarded() -> None:
    repository = InMemoryProfileRepository(
        profiles={
            "subject-a": make_profile("subject-a", full_name="Asha Rao"),
            "subject-b": make_profile("subject-b", full_name="Bala Iyer"),
        }
    )
    provider = FakeIdentityProvider(session=make_session("subject-a"))

    async def run() -> ProfileResolver:
        gate = asyncio.Event()
        repository.gates["subject-a"] = gate
        _, resolver = await _wired(provider, repository)
        provider.emit(AuthEvent.SIGNED_IN, make_session("subject-b"))
        await resolver.resolve("subject-b")
        await asyncio.sleep(0)
        assert resolver.state.profile.full_name == "Bala Iyer"

        gate.set()
        await resolver.resolve("subject-a")
        await asyncio.sleep(0)
        return resolver

    resolver = asyncio.run(run())

    assert resolver.state.subject_id == "subject-b"
    assert resolver.state.profile.full_name == "Bala Iyer"


def test_switching_subjects_forgets_the_previous_lookup() -> None:
    repository = InMemoryProfileRepository(
        profiles={
            "subject-a": make_profile("subject-a", full_name="Asha Rao"),
            "subject-b": make_profile("subject-b", full_name="Bala Iyer"),
        }
    )
    provider = FakeIdentityProvider(session=make_session("subject-a"))

    async def run() -> ProfileResolver:
        _, resolver = await _wired(provider, repository)
        await resolver.resolve("subject-a")
        provider.emit(AuthEvent.SIGNED_IN, make_session("subject-b"))
        await resolver.resolve("subject-b")
        provider.emit(AuthEvent.SIGNED_IN, make_session("subject-a"))
        await resolver.resolve("subject-a")
        await asyncio.sleep(0)
        return resolver

    resolver = asyncio.run(run())

    assert repository.calls == {"subject-a": 2, "subject-b": 1}
    assert resolver.state.profile.full_name == "Asha Rao"


def test_timeout_raises_and_fails_state() -> None:
    repository = InMemoryProfileRepository(
        profiles={"subject-1": make_profile()}, delay_seconds=0.5
    )

    async def run() -> ProfileResolver:
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()),
            repository,
            timeout_seconds=0.01,
        )
        with pytest.raises(ProfileFetchTimeout):
            await resolver.resolve("subject-1")
        await asyncio.sleep(0)
        return resolver

    resolver = asyncio.run(run())

    assert resolver.state.status is ProfileStatus.FAILED
    assert isinstance(resolver.state.error, ProfileFetchTimeout)


def test_failures_are_not_cached() -> None:
    repository = InMemoryProfileRepository(
        profiles={"subject-1": make_profile()}, error=ConnectionError("reset")
    )

    async def run() -> object:
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()), repository
        )
        with pytest.raises(ProfileFetchTransient):
            await resolver.resolve("subject-1")
        await asyncio.sleep(0)
        repository.error = None
        return await resolver.resolve("subject-1")

    profile = asyncio.run(run())

    assert profile == make_profile()
    assert repository.calls["subject-1"] == 2


def test_refetch_reloads_profile() -> None:
    repository = InMemoryProfileRepository(profiles={"subject-1": make_profile()})

    async def run() -> ProfileResolver:
        _, resolver = await _wired(
            FakeIdentityProvider(session=make_session()), repository
        )
        await resolver.resolve("subject-1")
        repository.profiles["subject-1"] = make_profile(full_name="Asha R")
        await resolver.refetch()
        await asyncio.sleep(0)
        return resolver

    resolver = asyncio.run(run())

    assert repository.calls["subject-1"] == 2
    assert resolver.state.profile.full_name == "Asha R"


def test_sign_out_resets_to_idle() -> None:
    repository = InMemoryProfileRepository(profiles={"subject-1": make_profile()})
    provider = FakeIdentityProvider(session=make_session())

    async def run() -> ProfileResolver:
        _, resolver = await _wired(provider, repository)
        await resolver.resolve("subject-1")
        provider.emit(AuthEvent.SIGNED_OUT, None)
        return resolver

    resolver = asyncio.run(run())

    assert resolver.state.status is ProfileStatus.IDLE
    assert resolver.current_subject is None
