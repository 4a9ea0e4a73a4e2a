"""EventBus - 커밋된 이코노미 이벤트를 외부 협력자에게 전달

규칙:
- 서비스는 트랜잭션 커밋 이후에만 발행한다 (트랜잭션 내부 발행 금지)
- 이벤트는 식별자와 커밋된 값만 전달한다 (ORM 객체 금지)
- 핸들러 실패는 로그만 남기고 커밋된 변경에 영향을 주지 않는다
- 버스 하나를 모든 요청 스레드가 공유한다. 재진입 발행 깊이는
  스레드별로 세며 최대 MAX_DEPTH
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List

from drop_economy.core.economy.models import utcnow
from drop_economy.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # handler → emit → handler 연쇄 최대 깊이


@dataclass
class EconomyEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: EventTypes 중 하나 (예: "reward_committed")
        data: 커밋된 값. ID와 스칼라만
        source: 발행한 서비스 이름
        occurred_at: 커밋 시각 (naive UTC)
    """

    event_type: str
    data: Dict[str, Any]
    source: str
    occurred_at: datetime = field(default_factory=utcnow)

    # 내부 추적용 (버스가 설정)
    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[EconomyEvent], None]


class EventBus:
    """동기식 in-process 이벤트 버스

    핸들러는 발행한 스레드에서 구독 순서대로 실행.

    사용 패턴:
        bus = EventBus()
        bus.subscribe(EventTypes.REWARD_COMMITTED, notifier.on_reward)
        bus.emit(EconomyEvent(event_type=..., data={"drop_id": 7}, source="reward_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._local = threading.local()

    @property
    def _current_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_current_depth.setter
    def _current_depth(self, value: int) -> None:
        self._local.depth = value

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """핸들러 등록. 같은 핸들러 중복 등록은 no-op."""
        with self._lock:
            if handler in self._handlers[event_type]:
                logger.warning(
                    "핸들러 중복 등록: %s → %s",
                    event_type,
                    handler.__qualname__,
                )
                return
            self._handlers[event_type].append(handler)
        logger.debug("EventBus 구독: %s → %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type)
            if handlers is None or handler not in handlers:
                logger.warning(
                    "핸들러 미등록: %s → %s",
                    event_type,
                    handler.__qualname__,
                )
                return
            handlers.remove(handler)
        logger.debug("EventBus 구독 해제: %s → %s", event_type, handler.__qualname__)

    def emit(self, event: EconomyEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 순서대로 동기 호출."""
        depth = self._current_depth
        if depth >= MAX_DEPTH:
            logger.warning(
                "EventBus 전파 깊이 초과 (%d): %s:%s 무시됨",
                MAX_DEPTH,
                event.source,
                event.event_type,
            )
            return

        event._depth = depth

        # 호출 중 핸들러가 구독/해제할 수 있도록 스냅샷
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, ()))
        if not handlers:
            logger.debug("EventBus: %s 구독자 없음", event.event_type)
            return

        logger.debug(
            "EventBus 전파: %s (source=%s, depth=%d, handlers=%d)",
            event.event_type,
            event.source,
            depth,
            len(handlers),
        )

        self._current_depth = depth + 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "EventBus 핸들러 에러: %s (event=%s)",
                        handler.__qualname__,
                        event.event_type,
                    )
        finally:
            self._current_depth = depth

    def emit_all(self, events: Iterable[EconomyEvent]) -> None:
        for event in events:
            self.emit(event)

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        with self._lock:
            self._handlers.clear()
        self._current_depth = 0

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    @property
    def handler_count(self) -> int:
        with self._lock:
            return sum(len(h) for h in self._handlers.values())
