from __future__ import annotations

import asyncio

import pytest

from link_scout.crawler.crawler import PendingWork
from link_scout.crawler.models import Page
from link_scout.crawler.store import ClaimState, VisitedStore

ADDRESS = "http://example.com/a"


@pytest.mark.asyncio()
async def test_first_claim_owns_later_claims_wait():
    store = VisitedStore()
    owner = store.claim(ADDRESS)
    waiter = store.claim(ADDRESS)
    assert owner.state is ClaimState.OWNER
    assert waiter.state is ClaimState.WAITER
    assert store.resolve(ADDRESS) is None

    page = Page(address=ADDRESS, title="A")
    store.store(page)

    assert await waiter.wait() is page
    again = store.claim(ADDRESS)
    assert again.state is ClaimState.STORED
    assert await again.wait() is page
    assert store.resolve(ADDRESS) is page
    assert ADDRESS in store
    assert len(store) == 1


@pytest.mark.asyncio()
async def test_store_inserts_only_if_absent():
    store = VisitedStore()
    first = Page(address=ADDRESS, title="first")
    assert store.store(first) is first
    assert store.store(Page(address=ADDRESS, title="second")) is first
    assert store.snapshot() == {ADDRESS: first}


@pytest.mark.asyncio()
async def test_abandon_wakes_waiters_and_is_final():
    store = VisitedStore()
    store.claim(ADDRESS)
    waiter = store.claim(ADDRESS)
    store.abandon(ADDRESS)
    assert await waiter.wait() is None
    assert store.claim(ADDRESS).state is ClaimState.FAILED
    assert store.failed == frozenset({ADDRESS})
    assert len(store) == 0


@pytest.mark.asyncio()
async def test_limit_rejects_new_addresses_only():
    store = VisitedStore(limit=1)
    assert store.claim(ADDRESS).state is ClaimState.OWNER
    assert store.claim("http://example.com/b").state is ClaimState.REJECTED
    assert store.claim(ADDRESS).state is ClaimState.WAITER
    assert store.claimed == 1


@pytest.mark.asyncio()
async def test_concurrent_claims_fetch_once():
    store = VisitedStore()
    fetches = 0

    async def discover() -> Page:
        nonlocal fetches
        claim = store.claim(ADDRESS)
        if claim.state is ClaimState.OWNER:
            fetches += 1
            await asyncio.sleep(0.05)
            return store.store(Page(address=ADDRESS))
        return await claim.wait()

    pages = await asyncio.gather(*(discover() for _ in range(25)))
    assert fetches == 1
    assert all(p is pages[0] for p in pages)


@pytest.mark.asyncio()
async def test_cancelled_waiter_does_not_cancel_result():
    store = VisitedStore()
    store.claim(ADDRESS)
    impatient = asyncio.ensure_future(store.claim(ADDRESS).wait())
    patient = store.claim(ADDRESS)
    await asyncio.sleep(0)
    impatient.cancel()
    page = store.store(Page(address=ADDRESS))
    assert await patient.wait() is page


@pytest.mark.asyncio()
async def test_pending_work_reaches_zero_after_children():
    pending = PendingWork()
    pending.add()
    waiter = asyncio.ensure_future(pending.wait())

    pending.add(2)  # children before the parent completes
    pending.done()
    await asyncio.sleep(0)
    assert not waiter.done()

    pending.done()
    pending.done()
    await asyncio.wait_for(waiter, timeout=1)
    assert pending.count == 0
    with pytest.raises(ValueError):
        pending.done()
