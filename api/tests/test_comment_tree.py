"""Comment tree composition: nesting, ordering and orphan handling."""
from types import SimpleNamespace

from rightsline.services.comment_tree import (
    CommentNode, render_comments, iter_comments, count_rendered,
)


def _c(id, parent, t):
    return SimpleNamespace(id=id, parent_comment_id=parent, created_at=t)


def _shape(nodes: list[CommentNode]) -> list:
    return [(n.id, n.depth, _shape(n.children)) for n in nodes]


class TestRenderComments:
    def test_empty_input(self):
        assert render_comments([]) == []

    def test_orphan_is_excluded(self):
        comments = [_c(1, None, 10), _c(2, 1, 20), _c(3, 99, 5)]

        tree = render_comments(comments)

        assert _shape(tree) == [(1, 0, [(2, 1, [])])]
        assert count_rendered(tree) == 2

    def test_orphan_subtree_is_excluded(self):
        # 4 hangs off an orphan, so it is unreachable too
        comments = [_c(1, None, 10), _c(3, 99, 5), _c(4, 3, 6)]

        tree = render_comments(comments)

        assert [c.id for c, _ in iter_comments(tree)] == [1]

    def test_self_parented_comment_is_unreachable(self):
        comments = [_c(1, None, 10), _c(5, 5, 11)]

        assert [n.id for n in render_comments(comments)] == [1]

    def test_newest_first_at_every_level(self):
        comments = [
            _c(1, None, 10),
            _c(2, None, 30),
            _c(3, 1, 11),
            _c(4, 1, 15),
            _c(5, 4, 16),
            _c(6, 4, 40),
        ]

        tree = render_comments(comments)

        assert _shape(tree) == [
            (2, 0, []),
            (1, 0, [
                (4, 1, [(6, 2, []), (5, 2, [])]),
                (3, 1, []),
            ]),
        ]

    def test_equal_timestamps_keep_input_order(self):
        comments = [_c(7, None, 10), _c(3, None, 10), _c(9, None, 10), _c(1, None, 5)]

        tree = render_comments(comments)

        assert [n.id for n in tree] == [7, 3, 9, 1]

    def test_siblings_never_increase_in_time(self):
        comments = [_c(i, None if i < 5 else i % 5, (i * 7) % 13) for i in range(20)]

        def check(nodes):
            times = [n.comment.created_at for n in nodes]
            assert times == sorted(times, reverse=True)
            for n in nodes:
                check(n.children)

        check(render_comments(comments))

    def test_render_is_idempotent(self):
        comments = [_c(1, None, 10), _c(2, 1, 20), _c(3, 2, 25), _c(4, None, 1)]

        assert _shape(render_comments(comments)) == _shape(render_comments(comments))

    def test_does_not_mutate_input(self):
        comments = [_c(2, None, 5), _c(1, None, 10)]

        render_comments(comments)

        assert [c.id for c in comments] == [2, 1]

    def test_long_reply_chain(self):
        chain_length = 2000
        comments = [_c(1, None, 0)] + [_c(i, i - 1, i) for i in range(2, chain_length + 1)]

        tree = render_comments(comments)

        walked = list(iter_comments(tree))
        assert [depth for _, depth in walked] == list(range(chain_length))
        assert [c.id for c, _ in walked] == list(range(1, chain_length + 1))
        assert count_rendered(tree) == chain_length

    def test_long_chain_input_order_does_not_matter(self):
        chain_length = 2000
        comments = [_c(i, i - 1 if i > 1 else None, i) for i in range(chain_length, 0, -1)]

        walked = list(iter_comments(render_comments(comments)))

        assert [c.id for c, _ in walked] == list(range(1, chain_length + 1))

    def test_cycle_below_start_is_rendered_once(self):
        # 5 and 6 reply to each other; rendering from 5 must terminate
        comments = [_c(5, 6, 10), _c(6, 5, 11)]

        tree = render_comments(comments, parent_id=5, depth=1)

        assert [(c.id, d) for c, d in iter_comments(tree)] == [(6, 1), (5, 2)]

    def test_subtree_from_parent_id(self):
        comments = [_c(1, None, 10), _c(2, 1, 20), _c(3, 1, 30)]

        children = render_comments(comments, parent_id=1, depth=1)

        assert [(n.id, n.depth) for n in children] == [(3, 1), (2, 1)]


class TestIterComments:
    def test_depth_first_display_order(self):
        comments = [_c(1, None, 10), _c(2, 1, 20), _c(3, None, 5), _c(4, 2, 21)]

        order = [(c.id, d) for c, d in iter_comments(render_comments(comments))]

        assert order == [(1, 0), (2, 1), (4, 2), (3, 0)]

    def test_walk_is_restartable(self):
        tree = render_comments([_c(1, None, 10), _c(2, 1, 20)])

        first = [c.id for c, _ in iter_comments(tree)]
        second = [c.id for c, _ in iter_comments(tree)]

        assert first == second == [1, 2]
