"""이코노미 에러 분류

모든 연산 실패는 EconomyError 서브클래스. 다섯 계열은 API 계층에서
사용자 메시지와 1:1 대응:

- ValidationError: 잘못된 입력, 변경 전에 깨진 도메인 규칙
- OwnershipError: 호출자 소유 아님 / 드롭 없음 / 이미 소모됨
- StateConflictError: 호출 도중 상태가 바뀜. 새로 읽은 뒤 재시도 가능
- LimitError: 쿨다운, 슬롯 용량, 레벨 제한
- InternalStoreError: 저장소 실패, 일반 메시지로만 노출
"""


class EconomyError(Exception):
    """모든 이코노미 실패의 기반 클래스"""

    code = "economy_error"

    def __init__(self, message: str = "Economy operation failed"):
        self.message = message
        super().__init__(self.message)


# =============================================================================
# 검증 (Validation)
# =============================================================================


class ValidationError(EconomyError):
    code = "validation"


class SelfReaction(ValidationError):
    def __init__(self, user_id: int, post_id: int):
        self.user_id = user_id
        self.post_id = post_id
        super().__init__(f"User {user_id} cannot react to their own post {post_id}")


class SlotKindMismatch(ValidationError):
    def __init__(self, drop_id: int, slot: str, kind: str):
        self.drop_id = drop_id
        self.slot = slot
        self.kind = kind
        super().__init__(f"Drop {drop_id} ({kind}) does not fit the {slot} slot")


class NotAReaction(ValidationError):
    def __init__(self, drop_id: int):
        self.drop_id = drop_id
        super().__init__(f"Drop {drop_id} is not a reaction item")


class PostNotFound(ValidationError):
    def __init__(self, post_id: int):
        self.post_id = post_id
        super().__init__(f"Post not found: {post_id}")


class UserNotFound(ValidationError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class OfferNotFound(ValidationError):
    def __init__(self, offer_id: int):
        self.offer_id = offer_id
        super().__init__(f"Trade offer not found: {offer_id}")


# =============================================================================
# 소유권 (Ownership)
# =============================================================================


class OwnershipError(EconomyError):
    code = "ownership"


class OwnershipMismatch(OwnershipError):
    def __init__(self, drop_id: int, expected_owner: int, actual_owner: int | None = None):
        self.drop_id = drop_id
        self.expected_owner = expected_owner
        self.actual_owner = actual_owner
        super().__init__(f"Drop {drop_id} is not owned by user {expected_owner}")


class DropNotFound(OwnershipError):
    def __init__(self, drop_id: int):
        self.drop_id = drop_id
        super().__init__(f"Drop not found: {drop_id}")


class AlreadyConsumed(OwnershipError):
    def __init__(self, drop_id: int):
        self.drop_id = drop_id
        super().__init__(f"Drop {drop_id} has already been consumed")


# =============================================================================
# 상태 충돌 (State conflict)
# =============================================================================


class StateConflictError(EconomyError):
    code = "state_conflict"


class OfferNotPending(StateConflictError):
    def __init__(self, offer_id: int, status: str | None = None):
        self.offer_id = offer_id
        self.status = status
        super().__init__(f"Trade offer {offer_id} is no longer pending ({status})")


class TradeInvalid(StateConflictError):
    def __init__(self, offer_id: int, drop_id: int):
        self.offer_id = offer_id
        self.drop_id = drop_id
        super().__init__(
            f"Trade offer {offer_id} is no longer valid: drop {drop_id} changed hands"
        )


class EquipConflict(StateConflictError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Equip slots of user {user_id} changed concurrently")


# =============================================================================
# 제한 (Limit)
# =============================================================================


class LimitError(EconomyError):
    code = "limit"


class CooldownNotElapsed(LimitError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Reward cooldown for user {user_id} has not elapsed")


class SlotFull(LimitError):
    def __init__(self, user_id: int, capacity: int):
        self.user_id = user_id
        self.capacity = capacity
        super().__init__(f"Badge slot is full ({capacity}); unequip a badge first")


class LevelTooLow(LimitError):
    def __init__(self, user_id: int, level: int, required: int):
        self.user_id = user_id
        self.level = level
        self.required = required
        super().__init__(f"Level {required} required, user {user_id} is level {level}")


# =============================================================================
# 저장소 (Store)
# =============================================================================


class InternalStoreError(EconomyError):
    code = "internal"

    def __init__(self, message: str = "Storage failure, please try again later"):
        super().__init__(message)
