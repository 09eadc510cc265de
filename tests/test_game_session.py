import pytest

from services.auth_events import AuthStateRegistry
from services.auth_service import AuthService
from services.game_session import CompletionEvent, GameSessionRunner
from utils.error_handler import (
    AuthenticationError, GameInProgressError, NotFoundError, ValidationError
)


@pytest.fixture
def events():
    return AuthStateRegistry()


@pytest.fixture
def runner(store, events):
    return GameSessionRunner(AuthService(store, auth_events=events))


class TestGameSessionRunner:

    def test_finish_yields_single_event(self, runner):
        runner.start('student-1', 'water_saver')

        event = runner.finish('student-1', 30)

        assert event == CompletionEvent('student-1', 'water_saver', 30)
        assert runner.active('student-1') is None
        with pytest.raises(NotFoundError):
            runner.finish('student-1', 30)

    def test_only_one_game_at_a_time(self, runner):
        runner.start('student-1', 'plant_tree')

        with pytest.raises(GameInProgressError):
            runner.start('student-1', 'waste_sorting')

        assert runner.active('student-1').game_type == 'plant_tree'

    def test_players_are_independent(self, runner):
        runner.start('student-1', 'plant_tree')
        runner.start('student-2', 'plant_tree')

        assert runner.finish('student-2', 5).user_id == 'student-2'
        assert runner.active('student-1') is not None

    def test_unknown_game_rejected(self, runner):
        with pytest.raises(ValidationError):
            runner.start('student-1', 'space_invaders')

        assert runner.active('student-1') is None

    def test_abandon_discards_run(self, runner):
        run = runner.start('student-1', 'waste_sorting')

        assert runner.abandon('student-1') is run
        assert runner.abandon('student-1') is None
        with pytest.raises(NotFoundError):
            runner.finish('student-1', 80)

    def test_new_game_after_finish(self, runner):
        first = runner.start('student-1', 'waste_sorting')
        runner.finish('student-1', 10)

        second = runner.start('student-1', 'waste_sorting')

        assert second.run_id != first.run_id

    def test_sign_out_discards_active_game(self, runner, events):
        events.signed_in('student-1')
        runner.start('student-1', 'waste_sorting')

        events.signed_out('student-1')

        assert runner.active('student-1') is None

    def test_start_after_sign_out_is_refused(self, runner, events):
        # a second listener keeps the signed-out channel alive
        events.subscribe('student-1', lambda _: None)
        events.signed_in('student-1')
        events.signed_out('student-1')

        with pytest.raises(AuthenticationError):
            runner.start('student-1', 'water_saver')

        assert runner.active('student-1') is None
        assert events.channel('student-1').subscriber_count() == 1
        runner.start('student-2', 'water_saver')
        assert runner.active('student-2') is not None

    def test_teardown_unsubscribes(self, runner, events):
        events.signed_in('student-1')
        runner.start('student-1', 'plant_tree')
        assert events.channel('student-1').subscriber_count() == 1

        runner.finish('student-1', 100)

        assert events.channel('student-1').subscriber_count() == 0

    def test_runner_without_auth_service(self):
        runner = GameSessionRunner()
        runner.start('student-1', 'plant_tree')

        assert runner.finish('student-1', 100).score == 100
