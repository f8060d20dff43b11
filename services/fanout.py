import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Protocol

from errors import UpstreamFailure
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body: str) -> bool: ...


@dataclass
class FanoutReport:
    attempted: int = 0
    delivered: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


async def resolve_recipients(storage: StorageGateway, channel_id: str) -> List[str]:
    """
    Email addresses of a channel's followers. Followers without an address are
    skipped. Storage failures propagate as UpstreamFailure.
    """
    addresses = []
    for user_id in sorted(await storage.fetch_follower_user_ids(channel_id)):
        email = await storage.fetch_user_email(user_id)
        if not email:
            logger.warning(f"Follower {user_id} of channel {channel_id} has no email address, skipping")
            continue
        addresses.append(email)
    return addresses


async def _send_one(mailer: Mailer, to: str, subject: str, body: str) -> bool:
    try:
        return bool(await mailer.send(to, subject, body))
    except UpstreamFailure as e:
        logger.error(f"Fanout mail to {to} failed: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error sending fanout mail to {to}: {e}")
    return False


async def send_all(mailer: Mailer, recipients: List[str], subject: str, body: str) -> FanoutReport:
    """
    Send one mail per recipient, concurrently and best-effort. A failed send is
    logged and counted; it never stops the others and is not retried.
    """
    report = FanoutReport(attempted=len(recipients))
    results = await asyncio.gather(*(_send_one(mailer, to, subject, body) for to in recipients))
    for to, ok in zip(recipients, results):
        (report.delivered if ok else report.failed).append(to)
    if report.failed:
        logger.warning(f"Fanout '{subject}': {len(report.failed)} of {report.attempted} sends failed")
    else:
        logger.info(f"Fanout '{subject}': {report.attempted} mails sent")
    return report


async def dispatch_fanout(
    storage: StorageGateway, mailer: Mailer, channel_id: str, subject: str, body: str
) -> FanoutReport:
    recipients = await resolve_recipients(storage, channel_id)
    return await send_all(mailer, recipients, subject, body)
