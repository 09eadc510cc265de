from services.auth_events import AuthStateChannel, AuthStateRegistry


class TestAuthStateChannel:

    def test_subscriber_gets_transitions(self):
        channel = AuthStateChannel()
        seen = []
        channel.subscribe(seen.append)

        channel.publish('user-1')
        channel.publish(None)

        assert seen == ['user-1', None]

    def test_nothing_delivered_before_first_publish(self):
        seen = []
        AuthStateChannel().subscribe(seen.append)

        assert seen == []

    def test_late_subscriber_receives_current_state(self):
        channel = AuthStateChannel()
        channel.publish('user-1')
        seen = []

        channel.subscribe(seen.append)

        assert seen == ['user-1']

    def test_repeated_state_is_not_a_transition(self):
        channel = AuthStateChannel()
        seen = []
        channel.subscribe(seen.append)

        channel.publish('user-1')
        channel.publish('user-1')
        channel.publish(None)
        channel.publish(None)

        assert seen == ['user-1', None]

    def test_every_subscriber_notified(self):
        channel = AuthStateChannel()
        first, second = [], []
        channel.subscribe(first.append)
        channel.subscribe(second.append)

        channel.publish('user-1')

        assert first == second == ['user-1']

    def test_unsubscribe_stops_delivery_and_is_idempotent(self):
        channel = AuthStateChannel()
        seen = []
        unsubscribe = channel.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        channel.publish('user-1')

        assert seen == []
        assert channel.subscriber_count() == 0

    def test_failing_subscriber_does_not_block_others(self):
        channel = AuthStateChannel()
        seen = []

        def broken(_):
            raise RuntimeError('boom')

        channel.subscribe(broken)
        channel.subscribe(seen.append)

        channel.publish('user-1')

        assert seen == ['user-1']


class TestAuthStateRegistry:

    def test_channels_are_per_subject(self):
        registry = AuthStateRegistry()
        first, second = [], []
        registry.subscribe('a', first.append)
        registry.subscribe('b', second.append)

        registry.signed_in('a')
        registry.signed_out('a')

        assert first == ['a', None]
        assert second == []

    def test_is_signed_in(self):
        registry = AuthStateRegistry()
        assert registry.is_signed_in('a') is False

        registry.signed_in('a')
        assert registry.is_signed_in('a') is True

        registry.signed_out('a')
        assert registry.is_signed_in('a') is False

    def test_is_signed_in_does_not_create_channels(self):
        registry = AuthStateRegistry()

        registry.is_signed_in('ghost')

        assert registry.channel_count() == 0

    def test_signed_out_channel_without_subscribers_is_dropped(self):
        registry = AuthStateRegistry()
        for n in range(20):
            registry.signed_in(f'user-{n}')
            registry.signed_out(f'user-{n}')

        assert registry.channel_count() == 0

    def test_channel_dropped_after_last_unsubscribe(self):
        registry = AuthStateRegistry()
        seen = []
        unsubscribe = registry.subscribe('a', seen.append)
        registry.signed_in('a')
        registry.signed_out('a')
        assert registry.channel_count() == 1

        unsubscribe()

        assert seen == ['a', None]
        assert registry.channel_count() == 0

    def test_signed_in_channel_survives_unsubscribe(self):
        registry = AuthStateRegistry()
        unsubscribe = registry.subscribe('a', lambda _: None)
        registry.signed_in('a')

        unsubscribe()

        assert registry.is_signed_in('a') is True
        assert registry.channel_count() == 1
