from meshhessen.core.enums import DeliveryStatus, RoutingError
from meshhessen.core.models import (
    BROADCAST_ADDR,
    ChannelInfo,
    DeliveryState,
    Message,
    MyNodeInfo,
    Node,
    format_node_id,
)


def test_models_construct() -> None:
    node = Node(num=0xA1B2C3D4, short_name="AB", long_name="Alpha Bravo")
    message = Message(sender_id=node.num, body="hello")

    assert node.node_id == "!a1b2c3d4"
    assert node.name == "Alpha Bravo"
    assert message.recipient_id == BROADCAST_ADDR
    assert message.delivery.status is DeliveryStatus.NONE


def test_node_name_falls_back_to_short_name() -> None:
    assert Node(num=1, short_name="XY").name == "XY"


def test_node_display_fields_use_dash_for_no_data() -> None:
    node = Node(num=1)
    assert node.distance == "-"
    assert node.snr_text == "-"
    assert node.rssi_text == "-"
    assert node.battery_text == "-"
    assert node.last_heard_text == "-"


def test_node_battery_over_100_is_external_power() -> None:
    assert Node(num=1, battery_level=101).battery_text == "PWR"
    assert Node(num=1, battery_level=87).battery_text == "87%"


def test_message_is_direct() -> None:
    assert not Message(sender_id=1).is_direct
    assert not Message(sender_id=1, recipient_id=0).is_direct
    assert Message(sender_id=1, recipient_id=2).is_direct


def test_with_reaction_is_idempotent_per_reactor_and_emoji() -> None:
    message = Message(sender_id=1, packet_id=10)
    once = message.with_reaction("👍", 7)
    twice = once.with_reaction("👍", 7)
    other = twice.with_reaction("👍", 8)

    assert twice.reactions == {"👍": [7]}
    assert other.reactions == {"👍": [7, 8]}
    # The original record is untouched
    assert message.reactions == {}


def test_without_reaction_drops_empty_emoji() -> None:
    message = Message(sender_id=1).with_reaction("🎉", 3)
    assert message.without_reaction("🎉", 3).reactions == {}
    assert message.without_reaction("🎉", 4) is message


def test_delivery_state_from_routing_error() -> None:
    assert DeliveryState.from_routing_error(RoutingError.NONE) == DeliveryState.delivered()
    failed = DeliveryState.from_routing_error(RoutingError.MAX_RETRANSMIT)
    assert failed.status is DeliveryStatus.FAILED
    assert failed.reason == "Max retransmit exceeded"


def test_routing_error_unknown_code_counts_as_delivered() -> None:
    assert RoutingError.from_code(999) is RoutingError.NONE
    assert RoutingError.from_code(3) is RoutingError.TIMEOUT


def test_channel_display_name() -> None:
    assert ChannelInfo(index=2).display_name == "Channel 2"
    assert ChannelInfo(index=0, name="Hessen").display_name == "Hessen"
    assert ChannelInfo(index=0, name="Hessen", uplink_enabled=True).display_name == "Hessen 📡"


def test_my_node_info_hex_id() -> None:
    assert MyNodeInfo(num=0x1234).node_id == "!00001234"
    assert format_node_id(0xFFFFFFFF) == "!ffffffff"


def test_last_heard_out_of_range_shows_dash() -> None:
    assert Node(num=1, last_heard=10**20).last_heard_text == "-"


def test_detached_message_has_own_reactions() -> None:
    original = Message(sender_id=1, body="x").with_reaction("👍", 7)
    copy = original.detached()

    copy.reactions["👍"].append(8)

    assert original.reactions == {"👍": [7]}
    assert copy.local_id == original.local_id
