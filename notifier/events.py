"""
Event definitions published on the bus.

Every event is its own class; the class is what subscribers route on. Events
are plain records with public fields and no bus-managed metadata.

Design decisions:
- Events are Pydantic models so they serialize to the JSON shape clients
  already understand (field aliases carry the wire names)
- Models are mutable: the notifier writes `id` and `typ` onto
  notification-class events before persisting and delivering them
- Every field has a zero value default, so `NewOrder()` is a valid event
- Notification-class events share the `Notification` base that carries
  `id` and `typ`; nothing else in the catalog has those fields

Catalog layout:
- Order lifecycle (NewOrder ... OrderCompletion)
- Dispute lifecycle (DisputeOpen ... ModeratorDisputeExpiry)
- Social (Follow, Unfollow, ModeratorAdd, ModeratorRemove)
- Chat (ChatMessage, ChatRead, ChatTyping)
- Wallet/chain, network and follower-tracker events
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventModel(BaseModel):
    """Base for all bus events: accepts field names or wire aliases."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Shared Value Records
# =============================================================================

class Thumbnail(EventModel):
    """Listing image hashes at two sizes."""
    tiny: str = ""
    small: str = ""


class ListingPrice(EventModel):
    """Price of a listing as shown in order notifications."""
    amount: str = ""
    currency_code: str = Field(default="", alias="currencyCode")
    price_modifier: float = Field(default=0.0, alias="priceModifier")


class Notification(EventModel):
    """
    Fields the notifier stamps onto notification-class events.

    Attributes:
        id: 40 character lowercase hex notification identifier
        typ: Kind tag such as "NewOrder" or "DisputeOpen"
    """
    id: str = Field(default="", alias="notificationID")
    typ: str = Field(default="", alias="type")


# =============================================================================
# Order Events
# =============================================================================

class NewOrder(Notification):
    """A buyer placed an order for one of our listings."""
    buyer_handle: str = Field(default="", alias="buyerHandle")
    buyer_id: str = Field(default="", alias="buyerID")
    listing_type: str = Field(default="", alias="listingType")
    order_id: str = Field(default="", alias="orderID")
    price: ListingPrice = Field(default_factory=ListingPrice)
    slug: str = ""
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    title: str = ""


class OrderFunded(Notification):
    """An order we sold has been fully funded by the buyer."""
    buyer_handle: str = Field(default="", alias="buyerHandle")
    buyer_id: str = Field(default="", alias="buyerID")
    listing_type: str = Field(default="", alias="listingType")
    order_id: str = Field(default="", alias="orderID")
    price: ListingPrice = Field(default_factory=ListingPrice)
    slug: str = ""
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    title: str = ""


class OrderPaymentReceived(Notification):
    """A payment towards one of our purchases was seen on chain."""
    order_id: str = Field(default="", alias="orderID")
    funding_total: str = Field(default="", alias="fundingTotal")
    coin_type: str = Field(default="", alias="coinType")


class OrderConfirmation(Notification):
    """The vendor confirmed our purchase."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    vendor_handle: str = Field(default="", alias="vendorHandle")
    vendor_id: str = Field(default="", alias="vendorID")


class OrderDeclined(Notification):
    """The vendor declined our purchase."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    vendor_handle: str = Field(default="", alias="vendorHandle")
    vendor_id: str = Field(default="", alias="vendorID")


class OrderCancel(Notification):
    """The buyer cancelled an order before it was confirmed."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    buyer_handle: str = Field(default="", alias="buyerHandle")
    buyer_id: str = Field(default="", alias="buyerID")


class Refund(Notification):
    """The vendor refunded our purchase."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    vendor_handle: str = Field(default="", alias="vendorHandle")
    vendor_id: str = Field(default="", alias="vendorID")


class OrderFulfillment(Notification):
    """The vendor fulfilled our purchase."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    vendor_handle: str = Field(default="", alias="vendorHandle")
    vendor_id: str = Field(default="", alias="vendorID")


class OrderCompletion(Notification):
    """The buyer completed (and possibly rated) an order we sold."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    buyer_handle: str = Field(default="", alias="buyerHandle")
    buyer_id: str = Field(default="", alias="buyerID")


class PaymentSentReceived(EventModel):
    order_id: str = Field(default="", alias="orderID")
    txid: str = Field(default="", alias="transactionID")


class RatingSignaturesReceived(EventModel):
    order_id: str = Field(default="", alias="orderID")


# =============================================================================
# Dispute Events
# =============================================================================

class DisputeOpen(Notification):
    """A dispute was opened on one of our orders."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    disputer_id: str = Field(default="", alias="disputerID")
    disputer_handle: str = Field(default="", alias="disputerHandle")
    disputee_id: str = Field(default="", alias="disputeeID")
    disputee_handle: str = Field(default="", alias="disputeeHandle")


class DisputeUpdate(Notification):
    """The other party added their side to an open dispute."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    disputer_id: str = Field(default="", alias="disputerID")
    disputer_handle: str = Field(default="", alias="disputerHandle")
    disputee_id: str = Field(default="", alias="disputeeID")
    disputee_handle: str = Field(default="", alias="disputeeHandle")
    buyer: str = ""


class DisputeClose(Notification):
    """The moderator closed a dispute."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    other_party_id: str = Field(default="", alias="otherPartyID")
    other_party_handle: str = Field(default="", alias="otherPartyHandle")
    buyer: str = ""


class DisputeAccepted(Notification):
    """The other party accepted the moderator's decision."""
    order_id: str = Field(default="", alias="orderID")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)
    other_party_id: str = Field(default="", alias="otherPartyID")
    other_party_handle: str = Field(default="", alias="otherPartyHandle")
    buyer: str = ""


class VendorFinalizedPayment(Notification):
    """The vendor released funds from a dispute that timed out."""
    order_id: str = Field(default="", alias="orderID")


class VendorDisputeTimeout(EventModel):
    order_id: str = Field(default="", alias="purchaseOrderID")
    expires_in: int = Field(default=0, ge=0, alias="expiresIn")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)


class BuyerDisputeTimeout(EventModel):
    order_id: str = Field(default="", alias="orderID")
    expires_in: int = Field(default=0, ge=0, alias="expiresIn")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)


class BuyerDisputeExpiry(EventModel):
    order_id: str = Field(default="", alias="orderID")
    expires_in: int = Field(default=0, ge=0, alias="expiresIn")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)


class ModeratorDisputeExpiry(EventModel):
    case_id: str = Field(default="", alias="disputeCaseID")
    expires_in: int = Field(default=0, ge=0, alias="expiresIn")
    thumbnail: Thumbnail = Field(default_factory=Thumbnail)


# =============================================================================
# Social Events
# =============================================================================

class Follow(Notification):
    """A peer started following us."""
    peer_id: str = Field(default="", alias="peerID")


class Unfollow(Notification):
    """A peer stopped following us."""
    peer_id: str = Field(default="", alias="peerID")


class ModeratorAdd(EventModel):
    peer_id: str = Field(default="", alias="peerID")


class ModeratorRemove(EventModel):
    peer_id: str = Field(default="", alias="peerID")


# =============================================================================
# Chat Events
# =============================================================================

class ChatMessage(EventModel):
    """A chat message, either received or sent from another session."""
    message_id: str = Field(default="", alias="messageID")
    peer_id: str = Field(default="", alias="peerID")
    order_id: str = Field(default="", alias="orderID")
    timestamp: Optional[datetime] = None
    read: bool = False
    outgoing: bool = False
    message: str = ""


class ChatRead(EventModel):
    """The other side read one of our messages."""
    message_id: str = Field(default="", alias="messageID")
    peer_id: str = Field(default="", alias="peerID")
    order_id: str = Field(default="", alias="orderID")


class ChatTyping(EventModel):
    """The other side is typing."""
    peer_id: str = Field(default="", alias="peerID")
    order_id: str = Field(default="", alias="orderID")


# =============================================================================
# Wallet / Chain Events
# =============================================================================

class IncomingTransaction(EventModel):
    wallet: str = ""
    txid: str = ""
    value: int = 0
    address: str = ""
    status: str = ""
    memo: str = ""
    timestamp: Optional[datetime] = None
    confirmations: int = 0
    order_id: str = Field(default="", alias="orderId")
    thumbnail: str = ""
    height: int = 0
    can_bump_fee: bool = Field(default=False, alias="canBumpFee")


class TransactionReceived(EventModel):
    """A transaction relevant to one of our wallets arrived."""
    txid: str = ""
    value: str = ""
    height: int = 0
    timestamp: Optional[datetime] = None
    currency_code: str = Field(default="", alias="currencyCode")


class SpendFromPaymentAddress(EventModel):
    """Funds left an order's payment address."""
    txid: str = ""
    value: str = ""
    height: int = 0
    timestamp: Optional[datetime] = None
    currency_code: str = Field(default="", alias="currencyCode")


class BlockReceived(EventModel):
    """A wallet saw a new block."""
    block_hash: str = Field(default="", alias="hash")
    height: int = 0
    prev_hash: str = Field(default="", alias="prevHash")
    block_time: Optional[datetime] = Field(default=None, alias="blockTime")
    currency_code: str = Field(default="", alias="currencyCode")


class AddressRequestResponse(EventModel):
    peer_id: str = Field(default="", alias="peerID")
    address: str = ""
    coin: str = ""


# =============================================================================
# Network Events
# =============================================================================

class PeerConnected(EventModel):
    peer: str = ""


class PeerDisconnected(EventModel):
    peer: str = ""


class MessageACK(EventModel):
    message_id: str = Field(default="", alias="messageID")


class PublishStarted(EventModel):
    """
    Publishing started. The id pairs it with the matching
    PublishFinished when several publishes run at once.
    """
    id: int = 0


class PublishFinished(EventModel):
    id: int = 0


class PublishingError(EventModel):
    err: str = ""


# =============================================================================
# Follower Tracker Events
# =============================================================================

class TrackerStarted(EventModel):
    pass


class TrackerPeerConnected(EventModel):
    peer: str = ""


class TrackerPeerDisconnected(EventModel):
    peer: str = ""


class TrackerFollow(EventModel):
    peer: str = ""


class TrackerUnfollow(EventModel):
    peer: str = ""


# =============================================================================
# Notifier Lifecycle
# =============================================================================

class NotifierStarted(EventModel):
    """Emitted once the notifier has subscribed and is about to start reading."""
    pass


# =============================================================================
# Catalogs
# =============================================================================

# Events the notifier persists and delivers as {"notification": ...}, in the
# order they are subscribed
NOTIFICATION_KINDS: tuple[type[Notification], ...] = (
    NewOrder,
    OrderFunded,
    OrderPaymentReceived,
    OrderConfirmation,
    OrderDeclined,
    OrderCancel,
    Refund,
    OrderFulfillment,
    OrderCompletion,
    DisputeOpen,
    DisputeUpdate,
    DisputeClose,
    DisputeAccepted,
    VendorFinalizedPayment,
    Follow,
    Unfollow,
)

# Events the notifier forwards without persisting
CHAT_KINDS: tuple[type[EventModel], ...] = (
    ChatMessage,
    ChatRead,
    ChatTyping,
)

# The kind tag written to `typ` is part of the client contract
KIND_TAGS: dict[type[Notification], str] = {
    kind: kind.__name__ for kind in NOTIFICATION_KINDS
}

_KINDS_BY_TAG: dict[str, type[Notification]] = {
    tag: kind for kind, tag in KIND_TAGS.items()
}


def kind_tag(event: object) -> Optional[str]:
    """Get the kind tag for an event, or None if it is not notification-class."""
    return KIND_TAGS.get(type(event))


def kind_for_tag(tag: str) -> Optional[type[Notification]]:
    """Look up the notification-class event class for a kind tag."""
    return _KINDS_BY_TAG.get(tag)
