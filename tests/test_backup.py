"""Backup capture tests."""

import httpx
import pytest

from atlas_client import AtlasClient
from app.services.actions import ResourceType
from app.services.audit import AuditedOperation, AuditLogger
from app.services.backup import BackupTarget, capture_backup
from app.services.outcomes import Degraded, Ok
from tests.fake_atlas import LOBBY_ID, FakeAtlas


class TestCaptureBackup:
    """Pre-mutation snapshots."""

    @pytest.mark.asyncio
    async def test_captures_server_file_content(
        self, atlas: AtlasClient, fake_atlas: FakeAtlas
    ) -> None:
        """Snapshot the current content before a write.

        Parameters
        ----------
        atlas : AtlasClient
            Client routed to the fake Atlas.
        fake_atlas : FakeAtlas
            In-memory Atlas.

        Returns
        -------
        None
            Asserts the captured payload shape.
        """
        fake_atlas.files[(LOBBY_ID, "/config.yml")] = "a=1"

        outcome = await capture_backup(
            atlas,
            "writeServerFileContents",
            BackupTarget(path="/config.yml", server="lobby"),
        )

        assert outcome == Ok({"originalContent": "a=1", "filePath": "/config.yml"})

    @pytest.mark.asyncio
    async def test_captures_template_file_content(
        self, atlas: AtlasClient, fake_atlas: FakeAtlas
    ) -> None:
        """Read template files from the global template store."""
        fake_atlas.templates["/plugins/motd.yml"] = "hello"

        outcome = await capture_backup(
            atlas, "deleteTemplateFile", BackupTarget(path="/plugins/motd.yml")
        )

        assert outcome == Ok(
            {"originalContent": "hello", "filePath": "/plugins/motd.yml"}
        )

    @pytest.mark.asyncio
    async def test_rename_records_original_path_without_fetch(
        self, atlas: AtlasClient, fake_atlas: FakeAtlas
    ) -> None:
        """Record only the old path for renames."""
        outcome = await capture_backup(
            atlas, "renameServerFile", BackupTarget(path="/a.txt", server="lobby")
        )

        assert outcome == Ok({"originalPath": "/a.txt"})
        assert fake_atlas.requests == []

    @pytest.mark.asyncio
    async def test_non_restorable_action_is_not_captured(
        self, atlas: AtlasClient, fake_atlas: FakeAtlas
    ) -> None:
        """Skip actions outside the restorable table."""
        outcome = await capture_backup(
            atlas, "getServerFileContents", BackupTarget(path="/a.txt", server="lobby")
        )

        assert isinstance(outcome, Degraded)
        assert fake_atlas.requests == []

    @pytest.mark.asyncio
    async def test_fetch_failure_degrades(self, atlas: AtlasClient) -> None:
        """Degrade instead of raising when the file cannot be read."""
        outcome = await capture_backup(
            atlas, "deleteServerFile", BackupTarget(path="/missing.txt", server="lobby")
        )

        assert isinstance(outcome, Degraded)
        assert "File not found" in outcome.reason

    @pytest.mark.asyncio
    async def test_unreadable_response_does_not_block_mutation(
        self, audit_logger: AuditLogger, fake_atlas: FakeAtlas
    ) -> None:
        """Let the write through when the file read returns garbage.

        Parameters
        ----------
        audit_logger : AuditLogger
            Logger for an authenticated context.
        fake_atlas : FakeAtlas
            In-memory Atlas serving everything except reads.

        Returns
        -------
        None
            Asserts capture degrades and the write still reaches Atlas.
        """
        fake_atlas.files[(LOBBY_ID, "/config.yml")] = "a=1"

        def handle(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and request.url.path.endswith("/contents"):
                return httpx.Response(200, text="<html>gateway</html>")
            return fake_atlas.handle(request)

        async with AtlasClient(
            base_url="http://atlas.test",
            api_key="test-key",
            max_retries=0,
            transport=httpx.MockTransport(handle),
        ) as flaky:
            target = BackupTarget(path="/config.yml", server="lobby")
            captured = await capture_backup(flaky, "writeServerFileContents", target)
            await AuditedOperation(audit_logger, flaky).run(
                action="writeServerFileContents",
                resource_type=ResourceType.FILE,
                resource_id="lobby",
                details={"server": "lobby", "file": "/config.yml", "content": "a=2"},
                call=lambda: flaky.write_server_file_contents(
                    "lobby", "/config.yml", "a=2"
                ),
                backup=target,
            )

        assert isinstance(captured, Degraded)
        assert fake_atlas.files[(LOBBY_ID, "/config.yml")] == "a=2"
