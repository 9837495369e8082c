"""
Assembly of the long-lived engine components.

``build_runtime`` wires one instance of every component from the application
configuration and a chat transport. The resulting ``Runtime`` is owned by
``main`` and shared with the operator console; nothing here is a module-level
singleton.
"""

from __future__ import annotations

from dataclasses import dataclass

from groupwarden.ai.classification_gateway import ClassificationGateway
from groupwarden.configuration.app_configuration import AppConfig
from groupwarden.database.database import Database
from groupwarden.listener.event_listener import EventListener
from groupwarden.listener.room_directory import RoomDirectory
from groupwarden.media.frame_extractor import FrameExtractor
from groupwarden.moderation.admin_response import AdminResponseHandler
from groupwarden.moderation.moderation_ledger import ModerationLedger
from groupwarden.moderation.moderation_pipeline import ModerationPipeline
from groupwarden.moderation.spam_detector import HeuristicSpamDetector, SpamThresholds
from groupwarden.scheduler.expiry_sweeper import ExpirySweeper
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.logger import get_logger
from groupwarden.verification.challenge import ChallengeGenerator, ImageChallengeGenerator
from groupwarden.verification.verification_manager import VerificationManager

logger = get_logger("runtime")


@dataclass
class Runtime:
    config: AppConfig
    transport: ChatTransport
    database: Database
    gateway: ClassificationGateway
    rooms: RoomDirectory
    pipeline: ModerationPipeline
    ledger: ModerationLedger
    admin_handler: AdminResponseHandler
    verification: VerificationManager
    sweeper: ExpirySweeper
    listener: EventListener

    async def start(self) -> None:
        """Connect the transport, load the room directory and start sweeping."""
        await self.transport.start(self.listener.on_message, self.listener.on_join)
        await self.rooms.refresh()
        self.sweeper.start()
        logger.info("[RUNTIME] Engine started (%d monitored rooms found)", len(self.rooms.monitored_rooms()))

    async def shutdown(self) -> None:
        await self.sweeper.shutdown()

        try:
            await self.transport.close()
        except Exception as exc:
            logger.exception("[RUNTIME] Error while closing transport: %s", exc)

        try:
            await self.gateway.close()
        except Exception as exc:
            logger.exception("[RUNTIME] Error while closing classification client: %s", exc)

        await self.database.shutdown()
        logger.info("[RUNTIME] Shutdown complete")


def build_runtime(
    config: AppConfig,
    transport: ChatTransport,
    database: Database,
    gateway: ClassificationGateway | None = None,
    generator: ChallengeGenerator | None = None,
) -> Runtime:
    """Wire every component; ``database`` must already be initialized before use."""
    gateway = gateway or ClassificationGateway(config.ai_settings)
    rooms = RoomDirectory(transport, config.monitored_rooms)

    pipeline = ModerationPipeline(
        spam_detector=HeuristicSpamDetector(SpamThresholds.from_mapping(config.spam_settings)),
        gateway=gateway,
        frame_extractor=FrameExtractor(
            frame_count=config.media_frame_count,
            gif_frame_step=config.gif_frame_step,
            ffmpeg_path=config.ffmpeg_path,
            ffprobe_path=config.ffprobe_path,
        ),
    )
    ledger = ModerationLedger(database)
    admin_handler = AdminResponseHandler(transport)
    verification = VerificationManager(
        database=database,
        transport=transport,
        generator=generator or ImageChallengeGenerator(),
        rooms=rooms,
        timeout_minutes=config.verification_timeout_minutes,
        challenge_length=config.challenge_length,
    )
    sweeper = ExpirySweeper(verification, interval=config.sweep_interval_seconds)
    listener = EventListener(
        transport=transport,
        rooms=rooms,
        pipeline=pipeline,
        ledger=ledger,
        admin_handler=admin_handler,
        verification=verification,
        database=database,
        admins=config.admins,
        self_identity=getattr(transport, "self_identity", "") or "",
    )

    if not gateway.is_available:
        logger.warning("[RUNTIME] No classification API key configured; only local spam checks will run")

    return Runtime(
        config=config,
        transport=transport,
        database=database,
        gateway=gateway,
        rooms=rooms,
        pipeline=pipeline,
        ledger=ledger,
        admin_handler=admin_handler,
        verification=verification,
        sweeper=sweeper,
        listener=listener,
    )
