import asyncio
import json
from types import SimpleNamespace

import pytest

from memento.backends import rabbitmq as rm_mod
from memento.contrib.pydantic import Event


class ParcelSentEvent(Event):
    parcel: str


class FakeMessage:
    def __init__(self, body, delivery_mode=None, content_type=None, headers=None, correlation_id=None, reply_to=None):
        self.body = body
        self.delivery_mode = delivery_mode
        self.content_type = content_type
        self.headers = headers
        self.correlation_id = correlation_id
        self.reply_to = reply_to


class IncomingMessage(FakeMessage):
    def __init__(self, body, **kwargs):
        super().__init__(body, **kwargs)
        self.processed = False

    def process(self):
        message = self

        class Context:
            async def __aenter__(self):
                return message

            async def __aexit__(self, exc_type, exc, tb):
                message.processed = True
                return False

        return Context()


class FakeExchange:
    def __init__(self):
        self.published = []

    async def publish(self, message, routing_key):
        self.published.append((message, routing_key))


class FakeQueue:
    def __init__(self, name):
        self.name = name
        self.bindings = []
        self.consumer = None
        self.consume_kwargs = {}

    async def bind(self, exchange, routing_key):
        self.bindings.append((exchange, routing_key))

    async def consume(self, callback, **kwargs):
        self.consumer = callback
        self.consume_kwargs = kwargs


class FakeChannel:
    def __init__(self):
        self.exchange = FakeExchange()
        self.default_exchange = FakeExchange()
        self.queues = {}
        self.declared_exchanges = []

    async def declare_exchange(self, name, exchange_type, durable=True):
        self.declared_exchanges.append((name, exchange_type, durable))
        return self.exchange

    async def declare_queue(self, name=None, durable=False, exclusive=False, auto_delete=False):
        queue = FakeQueue(name or "amq.gen-callback")
        self.queues[queue.name] = queue
        return queue


class FakeConnection:
    def __init__(self, channel):
        self._channel = channel
        self.is_closed = False

    async def channel(self):
        return self._channel

    async def close(self):
        self.is_closed = True


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def fake_aio_pika(monkeypatch, channel):
    connections = []

    async def connect_robust(url):
        connection = FakeConnection(channel)
        connections.append((url, connection))
        return connection

    fake = SimpleNamespace(
        connect_robust=connect_robust,
        Message=FakeMessage,
        DeliveryMode=SimpleNamespace(PERSISTENT=2),
        ExchangeType=SimpleNamespace(TOPIC="topic"),
        connections=connections,
    )
    monkeypatch.setattr(rm_mod, "aio_pika", fake)
    return fake


@pytest.mark.asyncio
async def test_connect_declares_topic_exchange(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker(url="amqp://test/", exchange_name="library")

    assert broker.is_connected is False
    await broker.connect()
    await broker.connect()

    assert broker.is_connected is True
    assert len(fake_aio_pika.connections) == 1
    assert channel.declared_exchanges == [("library", "topic", True)]


@pytest.mark.asyncio
async def test_publish_serializes_events(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker()
    event = ParcelSentEvent(parcel="p-1", correlation_id="00000000-0000-0000-0000-000000000001")

    await broker.publish("ParcelSentEvent", event, origin="test")

    message, routing_key = channel.exchange.published[-1]
    assert routing_key == "ParcelSentEvent"
    assert json.loads(message.body)["parcel"] == "p-1"
    assert message.content_type == "application/json"
    assert message.delivery_mode == 2
    assert message.headers == {
        "correlation_id": "00000000-0000-0000-0000-000000000001",
        "origin": "test",
    }


@pytest.mark.asyncio
async def test_publish_plain_dict(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker()

    await broker.publish("topic.key", {"a": 1})

    message, _ = channel.exchange.published[-1]
    assert json.loads(message.body) == {"a": 1}
    assert message.headers == {"correlation_id": None}


@pytest.mark.asyncio
async def test_subscribe_binds_queue_and_decodes_payload(fake_aio_pika, channel, caplog):
    broker = rm_mod.RabbitMQBroker()
    received = []

    async def handler(payload):
        if payload.get("fail"):
            raise RuntimeError("handler exploded")
        received.append(payload)

    await broker.subscribe("ParcelSentEvent", handler)

    queue = channel.queues["queue_ParcelSentEvent"]
    assert queue.bindings == [(channel.exchange, "ParcelSentEvent")]

    ok = IncomingMessage(b'{"parcel": "p-2"}')
    await queue.consumer(ok)
    assert received == [{"parcel": "p-2"}]
    assert ok.processed is True

    await queue.consumer(IncomingMessage(b'{"fail": true}'))
    assert "Error processing message from ParcelSentEvent: handler exploded" in caplog.text


@pytest.mark.asyncio
async def test_subscribe_with_explicit_queue_name(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker()

    async def handler(payload):
        pass

    await broker.subscribe("ParcelSentEvent", handler, queue_name="memento.a.ParcelSentEvent")

    assert "memento.a.ParcelSentEvent" in channel.queues


@pytest.mark.asyncio
async def test_request_publishes_and_waits_for_reply(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker(request_prefix="memento.requests", timeout=1)

    task = asyncio.create_task(broker.request("LendBookCommand", {"title": "Dune"}))
    while not channel.default_exchange.published:
        await asyncio.sleep(0)

    message, routing_key = channel.default_exchange.published[-1]
    assert routing_key == "memento.requests.LendBookCommand"
    assert message.reply_to == "amq.gen-callback"
    assert message.headers == {"message_type": "LendBookCommand"}

    callback_queue = channel.queues["amq.gen-callback"]
    assert callback_queue.consume_kwargs == {"no_ack": True}
    await callback_queue.consumer(IncomingMessage(b"reply", correlation_id=message.correlation_id))

    assert await task == b"reply"
    assert broker._futures == {}


@pytest.mark.asyncio
async def test_request_times_out(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker(timeout=0.01)

    with pytest.raises(asyncio.TimeoutError):
        await broker.request("LendBookCommand", {"title": "Dune"})

    assert broker._futures == {}


@pytest.mark.asyncio
async def test_reply_for_unknown_request_is_ignored(fake_aio_pika, channel, caplog):
    broker = rm_mod.RabbitMQBroker()
    await broker._ensure_callback_queue()

    await channel.queues["amq.gen-callback"].consumer(IncomingMessage(b"late", correlation_id="nope"))

    assert "Received reply for unknown request nope" in caplog.text


@pytest.mark.asyncio
async def test_respond_serves_requests_and_replies(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker()
    seen = []

    async def handler(body, headers):
        seen.append((body, headers))
        return b"served"

    await broker.respond("LendBookCommand", handler)

    queue = channel.queues["memento.requests.LendBookCommand"]
    request = IncomingMessage(
        b"{}", headers={"message_type": "LendBookCommand"}, correlation_id="r-1", reply_to="callback"
    )
    await queue.consumer(request)

    assert seen == [(b"{}", {"message_type": "LendBookCommand"})]
    reply, routing_key = channel.default_exchange.published[-1]
    assert routing_key == "callback"
    assert reply.body == b"served"
    assert reply.correlation_id == "r-1"
    assert request.processed is True


@pytest.mark.asyncio
async def test_respond_handler_failure_sends_no_reply(fake_aio_pika, channel, caplog):
    broker = rm_mod.RabbitMQBroker()

    async def handler(body, headers):
        raise RuntimeError("cannot serve")

    await broker.respond("LendBookCommand", handler)
    await channel.queues["memento.requests.LendBookCommand"].consumer(
        IncomingMessage(b"{}", headers={}, correlation_id="r-2", reply_to="callback")
    )

    assert channel.default_exchange.published == []
    assert "Error serving request for LendBookCommand: cannot serve" in caplog.text


@pytest.mark.asyncio
async def test_close_cancels_pending_requests(fake_aio_pika, channel):
    broker = rm_mod.RabbitMQBroker()
    await broker.connect()
    connection = broker._connection
    future = asyncio.get_running_loop().create_future()
    broker._futures["pending"] = future

    await broker.close()

    assert future.cancelled()
    assert connection.is_closed is True
    assert broker.is_connected is False
