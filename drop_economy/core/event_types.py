"""이벤트 유형 상수

모든 이벤트는 해당 트랜잭션 커밋 이후에 발행.
"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # post / reward
    POST_CREATED = "post_created"
    REWARD_COMMITTED = "reward_committed"

    # reaction
    REACTION_COMMITTED = "reaction_committed"

    # ledger
    ITEM_MINTED = "item_minted"
    ITEM_TRANSFERRED = "item_transferred"

    # equip
    ITEM_EQUIPPED = "item_equipped"
    ITEM_UNEQUIPPED = "item_unequipped"

    # trade
    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_DECLINED = "trade_declined"
    TRADE_RESCINDED = "trade_rescinded"
