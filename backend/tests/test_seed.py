"""
Blue Whale Backend: Seed Data Tests
=====================================

Test Strategy:
    ✅ ensure_test_accounts: missing accounts created with a bcrypt hash,
       existing accounts left alone
    ✅ random helpers: Seoul bounding box, 1-5 distinct tags, never pdf
    ✅ build_content: search markers in the first three tenths
    ✅ CLI: negative --content rejected, seed() invoked with the arguments
"""

import random
from unittest.mock import AsyncMock, patch

import pytest

from bluewhale.models import User
from bluewhale.security import verify_password
from bluewhale.seed import (
    SEED_TAGS,
    SEOUL_AREA,
    TEST_ACCOUNTS,
    TEST_PASSWORD,
    build_content,
    ensure_test_accounts,
    main,
    random_location,
    random_tags,
)


class TestEnsureTestAccounts:

    @pytest.mark.asyncio
    async def test_creates_missing_accounts(self, mock_db_session):
        users = await ensure_test_accounts(mock_db_session)

        assert mock_db_session.add.call_count == len(TEST_ACCOUNTS)
        assert [u.email for u in users] == [a["email"] for a in TEST_ACCOUNTS]
        for user in users:
            assert user.password_hash != TEST_PASSWORD
            assert verify_password(TEST_PASSWORD, user.password_hash)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_accounts_untouched(self, mock_db_session, make_user):
        existing = [make_user(email=a["email"]) for a in TEST_ACCOUNTS]
        mock_db_session.scalar.side_effect = existing

        users = await ensure_test_accounts(mock_db_session)

        mock_db_session.add.assert_not_called()
        assert users == existing
        assert users[0].password_hash == "not-a-real-hash"

    @pytest.mark.asyncio
    async def test_creates_only_the_missing_one(self, mock_db_session, make_user):
        mock_db_session.scalar.side_effect = [make_user(email=TEST_ACCOUNTS[0]["email"]), None]

        await ensure_test_accounts(mock_db_session)

        [call] = mock_db_session.add.call_args_list
        added = call.args[0]
        assert isinstance(added, User)
        assert added.email == TEST_ACCOUNTS[1]["email"]
        assert (added.longitude, added.latitude) == (127.0276, 37.5979)


class TestRandomHelpers:

    def setup_method(self):
        self.rng = random.Random(42)

    def test_random_location_inside_seoul(self):
        for _ in range(200):
            lng, lat, place = random_location(self.rng)
            assert SEOUL_AREA["min_lng"] <= lng <= SEOUL_AREA["max_lng"]
            assert SEOUL_AREA["min_lat"] <= lat <= SEOUL_AREA["max_lat"]
            assert place

    def test_random_tags_distinct(self):
        for _ in range(200):
            tags = random_tags(self.rng)
            assert 1 <= len(tags) <= 5
            assert len(set(tags)) == len(tags)
            assert set(tags) <= set(SEED_TAGS)

    def test_build_content_never_pdf(self, make_user):
        authors = [make_user(), make_user()]
        posts = [build_content(self.rng, authors, i, 100) for i in range(100)]

        assert all(p.content_type != "pdf" for p in posts)
        assert {p.author_id for p in posts} <= {a.id for a in authors}
        assert all(len(p.title) <= 200 for p in posts)

    def test_search_markers(self, make_user):
        authors = [make_user()]
        posts = [build_content(self.rng, authors, i, 30) for i in range(30)]

        assert all(p.title.startswith("Blue Whale") for p in posts[:3])
        assert all("Blue Whale Protocol" in p.body for p in posts[3:6])
        assert all("BlueWhale" in p.tags for p in posts[6:9])
        assert not any("BlueWhale" in p.tags for p in posts[9:])

    def test_same_seed_same_data(self, make_user):
        authors = [make_user()]
        first = build_content(random.Random(7), authors, 0, 10)
        second = build_content(random.Random(7), authors, 0, 10)

        assert (first.title, first.body, first.tags) == (second.title, second.body, second.tags)


class TestCli:

    def test_negative_content_rejected(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--content", "-1"])
        assert exc_info.value.code == 2

    def test_runs_seed(self):
        with patch("bluewhale.seed.seed", new_callable=AsyncMock) as mock_seed:
            assert main(["--content", "5", "--seed", "3"]) == 0

        mock_seed.assert_awaited_once_with(5, 3)
