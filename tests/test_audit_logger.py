"""Audit logger and audited operation tests."""

import json

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atlas_client import AtlasClient, AtlasNotFoundError
from app.models.audit import AuditLog
from app.services.actions import ResourceType
from app.services.audit import AuditedOperation, AuditLogEntry, AuditLogger
from app.services.backup import BackupTarget
from app.services.context import RequestContext
from app.services.outcomes import Degraded, Ok, Skipped
from tests.fake_atlas import LOBBY_ID, MINIGAME_ID, FakeAtlas


async def _entries(
    session_factory: async_sessionmaker[AsyncSession],
) -> list[AuditLog]:
    async with session_factory() as session:
        result = await session.execute(select(AuditLog).order_by(AuditLog.timestamp))
        return list(result.scalars().all())


class TestAuditLogger:
    """Writing journal entries."""

    @pytest.mark.asyncio
    async def test_persists_enriched_entry(
        self,
        audit_logger: AuditLogger,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Store provenance, enrichment and restorability.

        Parameters
        ----------
        audit_logger : AuditLogger
            Logger for an authenticated context.
        session_factory : async_sessionmaker[AsyncSession]
            Test session factory.

        Returns
        -------
        None
            Asserts the stored row.
        """
        outcome = await audit_logger.log_action(
            AuditLogEntry(
                action="writeServerFileContents",
                resource_type="file",
                resource_id=LOBBY_ID,
                details={"server": LOBBY_ID, "file": "/a.txt", "content": "x"},
                backup_data={"originalContent": "", "filePath": "/a.txt"},
            )
        )

        assert isinstance(outcome, Ok)
        [entry] = await _entries(session_factory)
        assert entry.id == outcome.value
        assert entry.resource_id == "lobby"
        assert entry.restore_possible is True
        assert entry.ip_address == "10.1.2.3"
        assert entry.user_agent == "pytest"
        assert json.loads(entry.details)["serverType"] == "static"
        assert json.loads(entry.backup_data) == {
            "originalContent": "",
            "filePath": "/a.txt",
        }

    @pytest.mark.asyncio
    async def test_identity_is_stable_across_locators(
        self,
        audit_logger: AuditLogger,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Journal a server under one identity whether given its name or id."""
        for locator in ("lobby", LOBBY_ID, "minigame-1", MINIGAME_ID):
            await audit_logger.log_action(
                AuditLogEntry(
                    action="restartServer",
                    resource_type="server",
                    resource_id=locator,
                    details={"server": locator},
                )
            )

        resource_ids = [entry.resource_id for entry in await _entries(session_factory)]
        assert resource_ids == ["lobby", "lobby", MINIGAME_ID, MINIGAME_ID]

    @pytest.mark.asyncio
    async def test_identity_survives_redeploy_and_rename(
        self,
        audit_logger: AuditLogger,
        fake_atlas: FakeAtlas,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Keep static servers under their name and dynamic ones under their id."""
        entry = AuditLogEntry(
            action="restartServer",
            resource_type="server",
            resource_id="lobby",
            details={"server": "lobby"},
        )
        await audit_logger.log_action(entry)
        redeployed = "9f6c2d11-4e8a-4b3c-a1d2-7e5f9c0b3a04"
        lobby = fake_atlas.servers.pop(LOBBY_ID)
        fake_atlas.servers[redeployed] = {**lobby, "serverId": redeployed}
        await audit_logger.log_action(entry)

        for name in ("minigame-1", "minigame-renamed"):
            fake_atlas.servers[MINIGAME_ID]["name"] = name
            await audit_logger.log_action(
                AuditLogEntry(
                    action="stopServer",
                    resource_type="server",
                    resource_id=name,
                    details={"server": name},
                )
            )

        entries = await _entries(session_factory)
        assert [e.resource_id for e in entries] == [
            "lobby",
            "lobby",
            MINIGAME_ID,
            MINIGAME_ID,
        ]
        assert json.loads(entries[1].details)["serverId"] == redeployed

    @pytest.mark.asyncio
    async def test_non_restorable_and_override(
        self,
        audit_logger: AuditLogger,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Derive restorability from the table unless overridden."""
        await audit_logger.log_action(
            AuditLogEntry(
                action="scale", resource_type="group", resource_id="minigames"
            )
        )
        await audit_logger.log_action(
            AuditLogEntry(
                action="deleteTemplateFile",
                resource_type="template",
                resource_id="global",
                restore_possible=False,
            )
        )

        scale, delete = await _entries(session_factory)
        assert scale.restore_possible is False
        assert scale.resource_id == "minigames"
        assert delete.restore_possible is False

    @pytest.mark.asyncio
    async def test_anonymous_caller_is_skipped(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        atlas: AtlasClient,
    ) -> None:
        """Write nothing without an authenticated actor."""
        logger = AuditLogger(session_factory, atlas, RequestContext(actor_id=None))

        outcome = await logger.log_action(
            AuditLogEntry(
                action="startServer", resource_type="server", resource_id="lobby"
            )
        )

        assert isinstance(outcome, Skipped)
        assert await _entries(session_factory) == []

    @pytest.mark.asyncio
    async def test_storage_failure_never_raises(
        self, atlas: AtlasClient, context: RequestContext
    ) -> None:
        """Report a failed write as degraded instead of raising."""

        def broken_factory() -> AsyncSession:
            raise RuntimeError("database is gone")

        logger = AuditLogger(broken_factory, atlas, context)  # type: ignore[arg-type]

        outcome = await logger.log_action(
            AuditLogEntry(
                action="startServer", resource_type="server", resource_id="lobby"
            )
        )

        assert outcome == Degraded(reason="database is gone")

    @pytest.mark.asyncio
    async def test_identity_outage_keeps_locator(
        self,
        audit_logger: AuditLogger,
        fake_atlas: FakeAtlas,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Fall back to the supplied locator when Atlas is down."""
        fake_atlas.offline = True

        outcome = await audit_logger.log_action(
            AuditLogEntry(
                action="stopServer",
                resource_type="server",
                resource_id=LOBBY_ID,
                details={"server": LOBBY_ID},
            )
        )

        assert isinstance(outcome, Ok)
        [entry] = await _entries(session_factory)
        assert entry.resource_id == LOBBY_ID
        assert "serverType" not in json.loads(entry.details)


class TestAuditedOperation:
    """Caller-side wrapping of Atlas mutations."""

    @pytest.mark.asyncio
    async def test_success_is_logged_with_backup(
        self,
        audit_logger: AuditLogger,
        atlas: AtlasClient,
        fake_atlas: FakeAtlas,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Capture, run and log a restorable mutation."""
        fake_atlas.files[(LOBBY_ID, "/config.yml")] = "a=1"
        audited = AuditedOperation(audit_logger, atlas)

        await audited.run(
            action="writeServerFileContents",
            resource_type=ResourceType.FILE,
            resource_id="lobby",
            details={"server": "lobby", "file": "/config.yml", "content": "a=2"},
            call=lambda: atlas.write_server_file_contents(
                "lobby", "/config.yml", "a=2"
            ),
            backup=BackupTarget(path="/config.yml", server="lobby"),
        )

        [entry] = await _entries(session_factory)
        assert entry.success is True
        assert json.loads(entry.backup_data)["originalContent"] == "a=1"
        assert fake_atlas.files[(LOBBY_ID, "/config.yml")] == "a=2"

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_reraised(
        self,
        audit_logger: AuditLogger,
        atlas: AtlasClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Record the error message and propagate the original exception."""
        audited = AuditedOperation(audit_logger, atlas)

        with pytest.raises(AtlasNotFoundError):
            await audited.run(
                action="deleteServerFile",
                resource_type=ResourceType.FILE,
                resource_id="lobby",
                details={"server": "lobby", "file": "/missing.txt"},
                call=lambda: atlas.delete_server_file("lobby", "/missing.txt"),
                backup=BackupTarget(path="/missing.txt", server="lobby"),
            )

        [entry] = await _entries(session_factory)
        assert entry.success is False
        assert entry.error_message == "Atlas API Error: File not found"
        assert entry.backup_data is None

    @pytest.mark.asyncio
    async def test_malformed_server_payload_keeps_locator(
        self,
        audit_logger: AuditLogger,
        fake_atlas: FakeAtlas,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Write the entry under the supplied locator when Atlas omits the id."""
        fake_atlas.servers[LOBBY_ID] = {"name": "lobby"}

        outcome = await audit_logger.log_action(
            AuditLogEntry(
                action="startServer",
                resource_type="server",
                resource_id="lobby",
                details={"server": "lobby"},
            )
        )

        assert isinstance(outcome, Ok)
        [entry] = await _entries(session_factory)
        assert entry.resource_id == "lobby"
        assert json.loads(entry.details) == {"server": "lobby"}
