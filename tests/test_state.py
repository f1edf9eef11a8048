"""Tests for AppState navigation and the message buffer."""

from kafka_eye.app.buffer import MessageBuffer
from kafka_eye.app.state import PAGE_SIZE, SCREEN_ORDER, VISIBLE_ROWS, AppState, Cursor, Screen
from kafka_eye.broker.protocol import BrokerMessage, TopicMetadata


def make_message(offset: int) -> BrokerMessage:
    return BrokerMessage(topic="t", partition=0, offset=offset, value=f"m{offset}")


def state_with_topics(count: int) -> AppState:
    state = AppState(screen=Screen.TOPIC_LIST)
    state.set_topics([TopicMetadata(name=f"topic-{i}") for i in range(count)])
    return state


class TestNavigation:
    """Cursor clamping and scroll window."""

    def test_move_down_clamps_at_last_row(self):
        state = state_with_topics(3)
        for _ in range(10):
            state.move_down()
        assert state.cursor.selected_index == 2

    def test_move_down_on_last_row_is_unchanged(self):
        state = state_with_topics(3)
        state.go_to_bottom()
        state.move_down()
        assert state.cursor.selected_index == 2

    def test_move_up_clamps_at_zero(self):
        state = state_with_topics(3)
        state.move_up()
        assert state.cursor.selected_index == 0

    def test_empty_list_stays_at_zero(self):
        state = AppState(screen=Screen.TOPIC_LIST)
        state.move_down()
        state.go_to_bottom()
        assert state.cursor == Cursor(0, 0)

    def test_screens_without_lists_do_not_move(self):
        state = AppState(screen=Screen.SETTINGS)
        state.move_down()
        assert state.cursor.selected_index == 0

    def test_scroll_keeps_selection_visible(self):
        state = state_with_topics(50)
        for _ in range(VISIBLE_ROWS):
            state.move_down()
        assert state.cursor.selected_index == VISIBLE_ROWS
        assert state.cursor.scroll_offset == 1

        state.go_to_bottom()
        assert state.cursor.selected_index == 49
        assert state.cursor.scroll_offset == 49 - (VISIBLE_ROWS - 1)

        state.go_to_top()
        assert state.cursor == Cursor(0, 0)

    def test_page_moves(self):
        state = state_with_topics(25)
        state.page_down()
        assert state.cursor.selected_index == PAGE_SIZE
        state.page_down()
        state.page_down()
        assert state.cursor.selected_index == 24
        state.page_up()
        assert state.cursor.selected_index == 24 - PAGE_SIZE

    def test_shrinking_list_clamps_cursor(self):
        state = state_with_topics(10)
        state.go_to_bottom()
        state.set_topics([TopicMetadata(name="only")])
        assert state.cursor.selected_index == 0


class TestScreens:
    """Cyclic screen navigation."""

    def test_next_wraps(self):
        state = AppState(screen=SCREEN_ORDER[-1])
        state.next_screen()
        assert state.screen == Screen.DASHBOARD

    def test_previous_wraps(self):
        state = AppState()
        state.previous_screen()
        assert state.screen == Screen.CLUSTER_MANAGEMENT

    def test_changing_screen_resets_cursor(self):
        state = state_with_topics(30)
        state.go_to_bottom()
        state.next_screen()
        assert state.cursor == Cursor(0, 0)

    def test_full_cycle(self):
        state = AppState()
        for _ in SCREEN_ORDER:
            state.next_screen()
        assert state.screen == Screen.DASHBOARD


class TestStatus:
    def test_set_connected(self):
        state = AppState()
        state.set_connected(True, "prod")
        assert state.status == "Connected to prod"
        state.set_connected(False, "prod")
        assert state.status == "Disconnected"
        assert state.current_cluster == "prod"


class TestMessageBuffer:
    """Ring buffer eviction."""

    def test_1001st_message_evicts_oldest(self):
        state = AppState()
        for offset in range(1001):
            state.add_message(make_message(offset))

        assert len(state.messages) == 1000
        offsets = [m.offset for m in state.messages]
        assert offsets[0] == 1
        assert offsets == list(range(1, 1001))
        assert state.stats.messages_received == 1001

    def test_get_last_n(self):
        buffer = MessageBuffer(maxlen=5)
        for offset in range(3):
            buffer.append(make_message(offset))
        assert [m.offset for m in buffer.get_messages(2)] == [1, 2]
        assert buffer.get_messages(0) == []
        assert buffer.maxlen == 5

    def test_clear(self):
        buffer = MessageBuffer(maxlen=5)
        buffer.append(make_message(0))
        buffer.clear()
        assert len(buffer) == 0
