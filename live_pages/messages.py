"""Typed command/event channel between an edit session and its host.

Hosts (an editor toolbar, an embedding page, a websocket bridge) talk to a
session with ``{"type": ..., "data": {...}}`` messages. :func:`parse_command`
turns inbound messages into command dataclasses and :class:`EditorChannel`
applies them to an :class:`~live_pages.session.EditSession`, reporting state
changes back through an ``emit`` callback as :class:`Event` records.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import logging
import typing as typ

from ._constants import DEFAULT_REGION
from .cache import encode_overlay
from .publish import PublishError

if typ.TYPE_CHECKING:
    from .publish import Publisher, PublishResult
    from .session import EditSession

logger = logging.getLogger(__name__)


class CommandType(enum.StrEnum):
    """Inbound message types."""

    ACTIVATE_EDITING = "ACTIVATE_EDITING"
    DEACTIVATE_EDITING = "DEACTIVATE_EDITING"
    TOGGLE_EDITING = "TOGGLE_EDITING"
    TOGGLE_SIDEBAR = "TOGGLE_SIDEBAR"
    ADD_SECTION = "ADD_SECTION"
    REMOVE_SECTION = "REMOVE_SECTION"
    MOVE_SECTION = "MOVE_SECTION"
    UPDATE_FIELD = "UPDATE_FIELD"
    PUBLISH_CHANGES = "PUBLISH_CHANGES"
    DISCARD_CHANGES = "DISCARD_CHANGES"


class EventType(enum.StrEnum):
    """Outbound message types."""

    THEME_READY = "THEME_READY"
    THEME_UPDATED = "THEME_UPDATED"
    PUBLISH_PAYLOAD_READY = "PUBLISH_PAYLOAD_READY"
    PUBLISH_SUCCESS = "PUBLISH_SUCCESS"
    PUBLISH_ERROR = "PUBLISH_ERROR"
    DISCARD_SUCCESS = "DISCARD_SUCCESS"


@dc.dataclass(slots=True, frozen=True)
class ActivateEditing:
    open: bool | None = None


@dc.dataclass(slots=True, frozen=True)
class DeactivateEditing:
    pass


@dc.dataclass(slots=True, frozen=True)
class ToggleEditing:
    pass


@dc.dataclass(slots=True, frozen=True)
class ToggleSidebar:
    open: bool | None = None


@dc.dataclass(slots=True, frozen=True)
class AddSection:
    section_type: str
    region: str = DEFAULT_REGION
    position: int | None = None


@dc.dataclass(slots=True, frozen=True)
class RemoveSection:
    section_id: str


@dc.dataclass(slots=True, frozen=True)
class MoveSection:
    section_id: str
    position: int


@dc.dataclass(slots=True, frozen=True)
class UpdateField:
    path: str
    value: typ.Any


@dc.dataclass(slots=True, frozen=True)
class PublishChanges:
    pass


@dc.dataclass(slots=True, frozen=True)
class DiscardChanges:
    pass


Command = (
    ActivateEditing
    | DeactivateEditing
    | ToggleEditing
    | ToggleSidebar
    | AddSection
    | RemoveSection
    | MoveSection
    | UpdateField
    | PublishChanges
    | DiscardChanges
)


@dc.dataclass(slots=True)
class Event:
    """Outbound notification for the host."""

    type: EventType
    data: dict[str, typ.Any] = dc.field(default_factory=dict)

    def to_message(self) -> dict[str, typ.Any]:
        """Return the wire form ``{"type": ..., "data": ...}``."""
        return {"type": str(self.type), "data": self.data}


def parse_command(message: object) -> Command | None:
    """Return the command carried by ``message`` or None when unusable.

    Unknown types and messages missing required fields are logged and
    ignored.
    """
    if not isinstance(message, cabc.Mapping):
        return None
    raw_type = message.get("type")
    data = message.get("data")
    data = data if isinstance(data, cabc.Mapping) else {}
    try:
        kind = CommandType(raw_type)
    except ValueError:
        logger.debug("Ignoring message of unknown type %r", raw_type)
        return None

    match kind:
        case CommandType.ACTIVATE_EDITING:
            return ActivateEditing(open=_optional_bool(data.get("open")))
        case CommandType.DEACTIVATE_EDITING:
            return DeactivateEditing()
        case CommandType.TOGGLE_EDITING:
            return ToggleEditing()
        case CommandType.TOGGLE_SIDEBAR:
            return ToggleSidebar(open=_optional_bool(data.get("open")))
        case CommandType.ADD_SECTION:
            section_type = data.get("sectionType")
            if not isinstance(section_type, str):
                return _invalid(kind)
            region = data.get("region")
            return AddSection(
                section_type=section_type,
                region=region if isinstance(region, str) else DEFAULT_REGION,
                position=_optional_int(data.get("position")),
            )
        case CommandType.REMOVE_SECTION:
            section_id = data.get("sectionId")
            if not isinstance(section_id, str):
                return _invalid(kind)
            return RemoveSection(section_id=section_id)
        case CommandType.MOVE_SECTION:
            section_id = data.get("sectionId")
            position = _optional_int(data.get("position"))
            if not isinstance(section_id, str) or position is None:
                return _invalid(kind)
            return MoveSection(section_id=section_id, position=position)
        case CommandType.UPDATE_FIELD:
            path = data.get("path")
            if not isinstance(path, str) or "value" not in data:
                return _invalid(kind)
            return UpdateField(path=path, value=data["value"])
        case CommandType.PUBLISH_CHANGES:
            return PublishChanges()
        case CommandType.DISCARD_CHANGES:
            return DiscardChanges()


def _invalid(kind: CommandType) -> None:
    logger.warning("Ignoring %s message with missing or invalid data", kind)


def _optional_bool(value: object) -> bool | None:
    return value if isinstance(value, bool) else None


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class EditorChannel:
    """Apply host commands to a session and report the resulting state.

    Parameters
    ----------
    session : EditSession
        Session the commands act on.
    emit : Callable[[Event], None]
        Receives every outbound event, in order.
    """

    def __init__(
        self, session: EditSession, emit: cabc.Callable[[Event], None]
    ) -> None:
        self.session = session
        self.emit = emit

    def state(self) -> dict[str, typ.Any]:
        """Return the session snapshot sent with ready/update events."""
        session = self.session
        return {
            "siteSlug": session.site_slug,
            "pageType": session.page_type,
            "editedData": encode_overlay(session.overlay.snapshot()),
            "sections": [section.to_dict() for section in session.get_sections()],
            "pages": session.document.data.get("pages"),
            "isPreviewMode": session.is_editing,
            "sidebarOpen": session.sidebar_open,
        }

    def ready(self) -> None:
        """Announce the session to the host."""
        self.emit(Event(EventType.THEME_READY, self.state()))

    def dispatch(self, message: object) -> bool:
        """Parse and handle a raw message; returns False when it was ignored."""
        command = parse_command(message)
        if command is None:
            return False
        self.handle(command)
        return True

    def handle(self, command: Command) -> None:
        """Apply ``command`` and emit the events it produces.

        ``PublishChanges`` hands the payload to the host as a
        ``PUBLISH_PAYLOAD_READY`` event; use :meth:`publish` to persist
        through a publisher directly.
        """
        session = self.session
        match command:
            case ActivateEditing(open=open_sidebar):
                session.is_editing = True
                if open_sidebar is not None:
                    session.sidebar_open = open_sidebar
            case DeactivateEditing():
                session.is_editing = False
            case ToggleEditing():
                session.is_editing = not session.is_editing
            case ToggleSidebar(open=open_sidebar):
                session.sidebar_open = (
                    not session.sidebar_open if open_sidebar is None else open_sidebar
                )
            case AddSection(section_type=section_type, region=region, position=pos):
                session.add_section(section_type, region, pos)
            case RemoveSection(section_id=section_id):
                session.remove_section(section_id)
            case MoveSection(section_id=section_id, position=position):
                session.move_section(section_id, position)
            case UpdateField(path=path, value=value):
                session.update_field(path, value)
            case PublishChanges():
                snapshot = session.prepare_publish()
                self.emit(
                    Event(
                        EventType.PUBLISH_PAYLOAD_READY,
                        {
                            "payloadSiteData": snapshot.payload,
                            "siteSlug": snapshot.site_slug,
                            "siteId": snapshot.site_id,
                            "currentLocale": session.locale,
                        },
                    )
                )
                return
            case DiscardChanges():
                session.discard()
                self.emit(Event(EventType.DISCARD_SUCCESS, self.state()))
                return
        self.emit(Event(EventType.THEME_UPDATED, self.state()))

    async def publish(self, publisher: Publisher | None = None) -> PublishResult | None:
        """Publish the session and report the outcome as an event.

        Returns the publish result, or None when publishing failed (the
        failure is reported as a ``PUBLISH_ERROR`` event).
        """
        try:
            result = await self.session.publish(publisher)
        except PublishError as exc:
            logger.warning("Publish failed: %s", exc)
            self.emit(Event(EventType.PUBLISH_ERROR, {"error": str(exc)}))
            return None
        self.emit(Event(EventType.PUBLISH_SUCCESS, {}))
        return result


__all__ = [
    "ActivateEditing",
    "AddSection",
    "Command",
    "CommandType",
    "DeactivateEditing",
    "DiscardChanges",
    "EditorChannel",
    "Event",
    "EventType",
    "MoveSection",
    "PublishChanges",
    "RemoveSection",
    "ToggleEditing",
    "ToggleSidebar",
    "UpdateField",
    "parse_command",
]
