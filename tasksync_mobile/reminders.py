import dataclasses
import datetime
import logging
import typing
import tasksync_mobile.errors
import tasksync_mobile.notifications

logger = logging.getLogger(__name__)

TASK_REMINDER_TYPE = "task-reminder"
DAILY_SUMMARY_TYPE = "daily-summary"
TASK_REMINDER_CATEGORY = "TASK_REMINDER"

MINUTES_PER_DAY = 1440

DEFAULT_REMINDER_OPTIONS = [5, 15, 30, 60, 120, 720, 1440, 2880, 10080]
DEFAULT_REMINDERS = [60, 1440]

_REMINDER_LABELS = {
    5: "5 minutes before",
    15: "15 minutes before",
    30: "30 minutes before",
    60: "1 hour before",
    120: "2 hours before",
    720: "12 hours before",
    1440: "1 day before",
    2880: "2 days before",
    10080: "1 week before",
}


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _as_aware(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _isoformat(value: datetime.datetime) -> str:
    return _as_aware(value).astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


@dataclasses.dataclass
class ReminderTask:
    id: int
    title: str
    due_date: typing.Optional[datetime.datetime] = None
    reminder_offsets: typing.Optional[typing.List[int]] = None

    @classmethod
    def from_wire(
        cls,
        task: typing.Dict[str, typing.Any],
        reminder_offsets: typing.Optional[typing.List[int]] = None
    ) -> "ReminderTask":
        due_date = task.get("dueDate")
        if isinstance(due_date, str):
            due_date = datetime.datetime.fromisoformat(due_date.replace("Z", "+00:00"))
        return cls(
            id=task["id"],
            title=task["title"],
            due_date=due_date,
            reminder_offsets=reminder_offsets
        )


def reminder_title(minutes_before: int) -> str:
    if minutes_before <= 5:
        return "Task due in 5 minutes!"
    elif minutes_before <= 15:
        return "Task due in 15 minutes!"
    elif minutes_before <= 30:
        return "Task due in 30 minutes!"
    elif minutes_before <= 60:
        return "Task due in 1 hour!"
    elif minutes_before <= 120:
        return "Task due in 2 hours"
    elif minutes_before <= MINUTES_PER_DAY:
        return "Task due tomorrow"

    days = minutes_before // MINUTES_PER_DAY
    return f"Task due in {days} day{'s' if days != 1 else ''}"


def reminder_label(minutes: int) -> str:
    return _REMINDER_LABELS.get(minutes, f"{minutes} minutes before")


class ReminderScheduler:
    def __init__(
        self,
        center: tasksync_mobile.notifications.NotificationCenter,
        clock: typing.Callable[[], datetime.datetime] = _utcnow,
        default_offsets: typing.Optional[typing.List[int]] = None
    ):
        self.center = center
        self.clock = clock
        self.default_offsets = list(default_offsets or DEFAULT_REMINDERS)

    async def schedule_task_reminders(self, task: ReminderTask) -> typing.List[str]:
        if task.due_date is None:
            return []

        now = _as_aware(self.clock())
        due_date = _as_aware(task.due_date)

        if due_date <= now:
            logger.info(f"Task {task.id} is already overdue, skipping all reminders")
            return []

        offsets = task.reminder_offsets if task.reminder_offsets is not None else self.default_offsets
        identifiers = []

        for minutes_before in offsets:
            trigger_at = due_date - datetime.timedelta(minutes=minutes_before)
            if trigger_at <= now:
                logger.debug(f"Skipping reminder {minutes_before} minutes before task {task.id} (in the past)")
                continue

            content = tasksync_mobile.notifications.NotificationContent(
                title=reminder_title(minutes_before),
                body=task.title,
                data={
                    "taskId": str(task.id),
                    "type": TASK_REMINDER_TYPE,
                    "dueDate": _isoformat(due_date),
                    "url": f"/task/{task.id}",
                },
                category=TASK_REMINDER_CATEGORY
            )

            try:
                identifier = await self.center.schedule(
                    content,
                    tasksync_mobile.notifications.DateTrigger(fire_at=trigger_at)
                )
            except Exception as e:
                failure = tasksync_mobile.errors.NotificationScheduleFailed(
                    f"Failed to schedule reminder {minutes_before} minutes before task {task.id}: {str(e)}"
                )
                logger.error(str(failure))
                continue

            identifiers.append(identifier)
            logger.debug(f"Scheduled reminder {identifier} for task {task.id} at {trigger_at.isoformat()}")

        logger.info(f"Scheduled {len(identifiers)} of {len(offsets)} reminders for task {task.id}")
        return identifiers

    async def get_task_reminders(self, task_id: int) -> typing.List[tasksync_mobile.notifications.ScheduledNotification]:
        scheduled = await self.center.get_all_scheduled()
        return [
            notification for notification in scheduled
            if notification.content.data.get("taskId") == str(task_id)
        ]

    async def cancel_task_reminders(self, task_id: int) -> int:
        try:
            reminders = await self.get_task_reminders(task_id)
        except Exception as e:
            logger.error(f"Failed to list reminders for task {task_id}: {str(e)}")
            return 0

        cancelled = 0
        for notification in reminders:
            try:
                await self.center.cancel(notification.identifier)
            except Exception as e:
                logger.error(f"Failed to cancel notification {notification.identifier} for task {task_id}: {str(e)}")
                continue
            cancelled += 1
            logger.debug(f"Cancelled notification {notification.identifier} for task {task_id}")

        return cancelled

    async def reschedule_task_reminders(self, task: ReminderTask) -> typing.List[str]:
        await self.cancel_task_reminders(task.id)
        return await self.schedule_task_reminders(task)

    async def schedule_daily_summary(self, hour: int = 9) -> str:
        if not 0 <= hour <= 23:
            raise ValueError(f"hour must be between 0 and 23, got {hour}")

        scheduled = await self.center.get_all_scheduled()
        for notification in scheduled:
            if notification.content.data.get("type") == DAILY_SUMMARY_TYPE:
                await self.center.cancel(notification.identifier)

        identifier = await self.center.schedule(
            tasksync_mobile.notifications.NotificationContent(
                title="Your Daily Tasks",
                body="Check your tasks for today",
                data={"type": DAILY_SUMMARY_TYPE, "url": "/"}
            ),
            tasksync_mobile.notifications.DailyTrigger(hour=hour, minute=0)
        )
        logger.info(f"Scheduled daily summary at {hour}:00")
        return identifier
