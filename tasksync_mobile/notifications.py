"""Local notification center used by the reminder scheduler.

Mirrors the capabilities a mobile OS exposes: schedule, enumerate pending,
cancel one, cancel all. There is no cancel-by-task primitive, so callers tag
notifications through ``content.data`` and filter on it.
"""
import abc
import dataclasses
import datetime
import json
import logging
import os
import typing
import uuid

logger = logging.getLogger(__name__)

REMINDER_CHANNEL = "task-reminders"


@dataclasses.dataclass
class NotificationContent:
    title: str
    body: str
    data: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    sound: typing.Optional[str] = "default"
    category: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class DateTrigger:
    fire_at: datetime.datetime
    channel_id: str = REMINDER_CHANNEL


@dataclasses.dataclass(frozen=True)
class DailyTrigger:
    hour: int
    minute: int = 0
    channel_id: str = REMINDER_CHANNEL


Trigger = typing.Union[DateTrigger, DailyTrigger]


@dataclasses.dataclass
class ScheduledNotification:
    identifier: str
    content: NotificationContent
    trigger: Trigger


class NotificationCenter(abc.ABC):
    @abc.abstractmethod
    async def schedule(self, content: NotificationContent, trigger: Trigger) -> str:
        ...

    @abc.abstractmethod
    async def get_all_scheduled(self) -> typing.List[ScheduledNotification]:
        ...

    @abc.abstractmethod
    async def cancel(self, identifier: str) -> None:
        ...

    @abc.abstractmethod
    async def cancel_all(self) -> None:
        ...


class InMemoryNotificationCenter(NotificationCenter):
    def __init__(self):
        self._pending: typing.Dict[str, ScheduledNotification] = {}

    async def schedule(self, content: NotificationContent, trigger: Trigger) -> str:
        identifier = str(uuid.uuid4())
        self._pending[identifier] = ScheduledNotification(identifier, content, trigger)
        return identifier

    async def get_all_scheduled(self) -> typing.List[ScheduledNotification]:
        return list(self._pending.values())

    async def cancel(self, identifier: str) -> None:
        self._pending.pop(identifier, None)

    async def cancel_all(self) -> None:
        self._pending.clear()


def _trigger_to_dict(trigger: Trigger) -> typing.Dict[str, typing.Any]:
    if isinstance(trigger, DailyTrigger):
        return {
            "type": "daily",
            "hour": trigger.hour,
            "minute": trigger.minute,
            "channelId": trigger.channel_id
        }
    return {
        "type": "date",
        "date": trigger.fire_at.isoformat(),
        "channelId": trigger.channel_id
    }


def _trigger_from_dict(raw: typing.Dict[str, typing.Any]) -> Trigger:
    channel_id = raw.get("channelId", REMINDER_CHANNEL)
    if raw["type"] == "daily":
        return DailyTrigger(hour=raw["hour"], minute=raw.get("minute", 0), channel_id=channel_id)
    return DateTrigger(
        fire_at=datetime.datetime.fromisoformat(raw["date"]),
        channel_id=channel_id
    )


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class FileNotificationCenter(InMemoryNotificationCenter):
    """Pending notifications persisted as JSON so they survive a restart."""

    def __init__(
        self,
        path: str,
        clock: typing.Callable[[], datetime.datetime] = lambda: datetime.datetime.now(datetime.timezone.utc)
    ):
        super().__init__()
        self.path = path
        self.clock = clock
        self._load()
        if self._prune_fired():
            self._save()

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                entries = json.load(f)
            except json.JSONDecodeError:
                logger.error(f"Corrupt notification file {self.path}, starting empty")
                return

        for entry in entries:
            content = NotificationContent(**entry["content"])
            self._pending[entry["identifier"]] = ScheduledNotification(
                entry["identifier"],
                content,
                _trigger_from_dict(entry["trigger"])
            )

    def _prune_fired(self) -> int:
        now = self.clock()
        fired = [
            identifier for identifier, notification in self._pending.items()
            if isinstance(notification.trigger, DateTrigger) and _as_utc(notification.trigger.fire_at) <= _as_utc(now)
        ]
        for identifier in fired:
            del self._pending[identifier]
        if fired:
            logger.debug(f"Dropped {len(fired)} delivered notifications from {self.path}")
        return len(fired)

    def _save(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        entries = [
            {
                "identifier": notification.identifier,
                "content": dataclasses.asdict(notification.content),
                "trigger": _trigger_to_dict(notification.trigger)
            }
            for notification in self._pending.values()
        ]
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(entries, f)
        os.replace(tmp_path, self.path)

    async def schedule(self, content: NotificationContent, trigger: Trigger) -> str:
        identifier = await super().schedule(content, trigger)
        self._save()
        return identifier

    async def get_all_scheduled(self) -> typing.List[ScheduledNotification]:
        if self._prune_fired():
            self._save()
        return await super().get_all_scheduled()

    async def cancel(self, identifier: str) -> None:
        await super().cancel(identifier)
        self._save()

    async def cancel_all(self) -> None:
        await super().cancel_all()
        self._save()
