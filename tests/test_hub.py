from lyricsync.web.state import OBSERVER, PLAYER, ClientHub


def test_connections_sharing_an_id_are_tracked_separately():
    hub = ClientHub()
    first = hub.subscribe("tab-1", PLAYER)
    second = hub.subscribe("tab-1", PLAYER)
    assert hub.client_count == 2
    assert hub.clients(PLAYER) == ["tab-1"]

    hub.unsubscribe(second)
    assert hub.is_connected("tab-1")
    assert hub.publish("forceSync", {}, role=PLAYER) == 1
    assert first.get_nowait() == ("forceSync", {})

    hub.unsubscribe(first)
    assert not hub.is_connected("tab-1")


def test_publish_respects_roles():
    hub = ClientHub()
    player = hub.subscribe("p", PLAYER)
    observer = hub.subscribe("o", OBSERVER)
    assert hub.publish("storeUpdated", {"store": {}}, role=OBSERVER) == 1
    assert observer.qsize() == 1
    assert player.empty()


def test_reply_to_a_full_queue_drops_the_oldest_event():
    hub = ClientHub()
    q = hub.subscribe("o", OBSERVER)
    for i in range(q.maxsize):
        hub.reply(q, "tick", i)
    assert hub.reply(q, "tick", "latest")
    assert q.get_nowait() == ("tick", 1)
    assert q.qsize() == q.maxsize - 1


def test_reply_to_a_closed_connection_is_refused():
    hub = ClientHub()
    q = hub.subscribe("o", OBSERVER)
    hub.unsubscribe(q)
    assert not hub.reply(q, "tick", 0)
