"""
Workflow scenarios against an in-memory backend.

Run with:
    pytest tests/test_controller.py -v
"""

from datetime import date

import pytest

from conftest import FakeBackend
from gflow.flow import (
    AmbiguousTarget, BranchNamer, BranchNaming, BranchRef, ConflictingStrategy,
    Method, NoImplicitSource, Role, UnrecognizedBranch,
)
from gflow.flow.controller import WorkflowController
from gflow.git import (
    BranchExists, BranchNotFound, GitError, MergeConflict, NetworkError, NotFullyMerged, PushRejected,
)
from gflow.version import TagVersionCalculator, VersionUnavailable


NO_FF = Method.MERGE_NO_FF


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------

class TestStartFeature:

    @pytest.mark.parametrize("name", ["login-form", "feature/login-form"])
    def test_creates_from_integration(self, make_controller, name):
        controller, backend = make_controller(current='master')
        ref = controller.start_feature(name)

        assert ref == BranchRef(Role.FEATURE, "login-form")
        assert backend.ops == [
            ('create', 'feature/login-form', 'develop'),
            ('switch', 'feature/login-form'),
        ]
        assert backend.current == 'feature/login-form'

    def test_empty_name_rejected_before_any_call(self, make_controller):
        controller, backend = make_controller()
        with pytest.raises(UnrecognizedBranch):
            controller.start_feature("feature/")
        assert backend.ops == []


class TestStartHotfix:

    def test_patch_increment_from_trunk(self, make_controller):
        controller, backend = make_controller(version='1.4.2')
        ref = controller.start_hotfix()

        assert ref == BranchRef(Role.HOTFIX, "1.4.3")
        assert backend.ops == [
            ('switch', 'master'),
            ('create', 'hotfix/1.4.3', 'master'),
            ('switch', 'hotfix/1.4.3'),
        ]

    def test_version_unavailable_creates_nothing(self, make_controller):
        controller, backend = make_controller(version=None)
        with pytest.raises(VersionUnavailable):
            controller.start_hotfix()
        assert not any(op[0] == 'create' for op in backend.ops)

    def test_no_calculator(self, make_controller):
        controller, backend = make_controller()
        controller.calculator = None
        with pytest.raises(VersionUnavailable, match="No version source"):
            controller.start_hotfix()


class TestStartRelease:

    def test_preserves_version_by_default(self, make_controller):
        controller, backend = make_controller(version='2.1.5')
        assert controller.start_release() == BranchRef(Role.RELEASE, "2.1.5")
        assert backend.ops[0] == ('switch', 'develop')
        assert ('create', 'release/2.1.5', 'develop') in backend.ops

    def test_major(self, make_controller):
        controller, backend = make_controller(version='2.1.5')
        ref = controller.start_release(major_version=True)

        assert controller.namer.render(ref) == "release/3.0.0"
        assert backend.current == "release/3.0.0"

    def test_date_based(self, make_controller):
        controller, backend = make_controller(version='2.1.5', today=date(2024, 3, 7))
        ref = controller.start_release(use_date=True)
        assert controller.namer.render(ref) == "release/202403.7.0"

    def test_existing_release_branch(self, make_controller):
        controller, backend = make_controller(version='2.1.5', branches={'master', 'develop', 'release/2.1.5'})
        with pytest.raises(BranchExists):
            controller.start_release()

    @pytest.mark.parametrize("tag", ["2.1.5", "v2.1.5"])
    def test_already_released_version_refused(self, make_controller, tag):
        controller, backend = make_controller(version='2.1.5', tags={tag})
        with pytest.raises(VersionUnavailable, match="already tagged"):
            controller.start_release()
        assert not any(op[0] == 'create' for op in backend.ops)

    def test_tag_source_past_latest_tag(self):
        backend = FakeBackend(latest_tag='1.4.3', tags={'1.4.3'})
        controller = WorkflowController(backend, TagVersionCalculator(backend))

        assert controller.start_release() == BranchRef(Role.RELEASE, "1.4.4")
        assert ('create', 'release/1.4.4', 'develop') in backend.ops


# ---------------------------------------------------------------------------
# complete hotfix
# ---------------------------------------------------------------------------

class TestCompleteHotfix:
    BRANCHES = {'master', 'develop', 'hotfix/1.4.3'}

    def test_full_sequence(self, make_controller):
        controller, backend = make_controller(current='develop', branches=self.BRANCHES)
        ref = controller.complete_hotfix("hotfix/1.4.3")

        assert ref == BranchRef(Role.HOTFIX, "1.4.3")
        assert backend.ops == [
            ('switch', 'master'),
            ('fetch', 'origin', 'hotfix/1.4.3'),
            ('reconcile', 'master', 'hotfix/1.4.3', NO_FF),
            ('switch', 'develop'),
            ('fetch', 'origin', 'hotfix/1.4.3'),
            ('reconcile', 'develop', 'hotfix/1.4.3', NO_FF),
            ('delete', 'hotfix/1.4.3', False),
            ('tag', '1.4.3', 'master', True),
            ('confirm',),
            ('push', ('master', 'develop'), True, False),
        ]

    def test_name_without_prefix(self, make_controller):
        controller, backend = make_controller(branches=self.BRANCHES)
        assert controller.complete_hotfix("1.4.3") == BranchRef(Role.HOTFIX, "1.4.3")

    def test_uses_current_branch(self, make_controller):
        controller, backend = make_controller(current='hotfix/1.4.3', branches=self.BRANCHES)
        controller.complete_hotfix()
        assert ('delete', 'hotfix/1.4.3', False) in backend.ops

    def test_ambiguous_without_mutation(self, make_controller):
        controller, backend = make_controller(current='feature/x', branches=self.BRANCHES)
        with pytest.raises(AmbiguousTarget):
            controller.complete_hotfix()
        assert backend.ops == []

    def test_malformed_version_rejected(self, make_controller):
        controller, backend = make_controller(branches=self.BRANCHES)
        with pytest.raises(UnrecognizedBranch):
            controller.complete_hotfix("hotfix/urgent")
        assert backend.ops == []

    def test_conflict_stops_before_delete_and_tag(self, make_controller):
        conflict = MergeConflict("merge stopped on conflicts", details="CONFLICT (content): app.py")
        controller, backend = make_controller(branches=self.BRANCHES, fail={'reconcile': conflict})

        with pytest.raises(MergeConflict):
            controller.complete_hotfix("hotfix/1.4.3")

        names = [op[0] for op in backend.ops]
        assert 'delete' not in names
        assert 'tag' not in names
        assert 'push' not in names
        assert backend.ops[-1] == ('reconcile', 'master', 'hotfix/1.4.3', NO_FF)

    def test_rerun_after_delete_finishes_remaining_steps(self, make_controller):
        # an earlier run merged, deleted and tagged, then stopped before pushing
        controller, backend = make_controller(current='develop', branches={'master', 'develop'},
                                              tagged={'master': ['1.4.3']})
        controller.complete_hotfix("hotfix/1.4.3")

        assert not any(op[0] == 'reconcile' for op in backend.ops)
        assert ('tag', '1.4.3', 'master', True) in backend.ops
        assert backend.ops[-1] == ('push', ('master', 'develop'), True, False)

    # 1.4.2 was released long ago; its tag is not at the trunk tip
    @pytest.mark.parametrize("name", ["9.9.9", "hotfix/1.4.2"])
    def test_unknown_branch_fails_before_any_step(self, make_controller, capsys, name):
        controller, backend = make_controller(current='develop', branches=self.BRANCHES, tags={'1.4.2'})
        with pytest.raises(BranchNotFound):
            controller.complete_hotfix(name)

        assert [op[0] for op in backend.ops] == ['fetch']
        assert "[1/7]" not in capsys.readouterr().out

    def test_branch_only_on_remote(self, make_controller):
        controller, backend = make_controller(branches={'master', 'develop'}, remote_branches={'hotfix/1.4.3'})
        controller.complete_hotfix("1.4.3")

        assert backend.ops[0] == ('fetch', 'origin', 'hotfix/1.4.3')
        assert ('reconcile', 'master', 'hotfix/1.4.3', NO_FF) in backend.ops

    def test_not_fully_merged_escalates_to_force(self, make_controller, capsys):
        controller, backend = make_controller(
            branches=self.BRANCHES, fail={'delete': NotFullyMerged("not fully merged")}
        )
        controller.complete_hotfix("hotfix/1.4.3")

        deletes = [op for op in backend.ops if op[0] == 'delete']
        assert deletes == [('delete', 'hotfix/1.4.3', False), ('delete', 'hotfix/1.4.3', True)]
        assert "deleting anyway" in capsys.readouterr().out

    def test_declined_push(self, make_controller, capsys):
        controller, backend = make_controller(branches=self.BRANCHES, approve=False)
        controller.complete_hotfix("hotfix/1.4.3")

        assert backend.ops[-1] == ('confirm',)
        out = capsys.readouterr().out
        assert "Push skipped" in out
        assert "git push origin master develop --tags" in out

    def test_push_rejected_propagates(self, make_controller):
        controller, backend = make_controller(branches=self.BRANCHES, fail={'push': PushRejected("rejected")})
        with pytest.raises(PushRejected):
            controller.complete_hotfix("hotfix/1.4.3")
        # local work is kept
        assert ('tag', '1.4.3', 'master', True) in backend.ops

    def test_deletes_remote_branch_when_configured(self, make_controller):
        controller, backend = make_controller(branches=self.BRANCHES, delete_remote_branches=True)
        controller.complete_hotfix("hotfix/1.4.3")
        assert ('delete-remote', 'origin', 'hotfix/1.4.3') in backend.ops

    def test_progress_lines(self, make_controller, capsys):
        controller, backend = make_controller(branches=self.BRANCHES)
        controller.complete_hotfix("hotfix/1.4.3")
        out = capsys.readouterr().out
        assert "[1/7]" in out
        assert "Merge hotfix/1.4.3 into develop" in out


# ---------------------------------------------------------------------------
# complete release
# ---------------------------------------------------------------------------

class TestCompleteRelease:
    BRANCHES = {'master', 'develop', 'release/3.0.0'}

    def test_full_sequence_from_current_branch(self, make_controller):
        controller, backend = make_controller(current='release/3.0.0', branches=self.BRANCHES)
        ref = controller.complete_release()

        assert ref == BranchRef(Role.RELEASE, "3.0.0")
        assert backend.ops == [
            ('switch', 'master'),
            ('fetch', 'origin', 'release/3.0.0'),
            ('reconcile', 'master', 'release/3.0.0', NO_FF),
            ('tag', '3.0.0', 'master', True),
            ('switch', 'develop'),
            ('fetch', 'origin', 'master'),
            ('reconcile', 'develop', 'master', Method.MERGE),
            ('delete', 'release/3.0.0', False),
            ('confirm',),
            ('push', None, True, False),
        ]

    def test_integration_merge_is_plain(self, make_controller):
        controller, backend = make_controller(current='release/3.0.0', branches=self.BRANCHES)
        controller.complete_release()
        into_develop = [op for op in backend.ops if op[0] == 'reconcile' and op[1] == 'develop']
        assert into_develop == [('reconcile', 'develop', 'master', Method.MERGE)]

    def test_ambiguous_on_integration(self, make_controller):
        controller, backend = make_controller(current='develop', branches=self.BRANCHES)
        with pytest.raises(AmbiguousTarget):
            controller.complete_release()

    def test_conflict_on_integration_leaves_branch(self, make_controller):
        controller, backend = make_controller(current='release/3.0.0', branches=self.BRANCHES)
        original = backend.reconcile

        def reconcile(method, source):
            original(method, source)
            if backend.current == 'develop':
                raise MergeConflict("merge stopped on conflicts")
        backend.reconcile = reconcile

        with pytest.raises(MergeConflict):
            controller.complete_release()
        assert ('tag', '3.0.0', 'master', True) in backend.ops
        assert 'release/3.0.0' in backend.branches

    def test_free_form_release_when_not_strict(self, make_controller):
        namer = BranchNamer(BranchNaming(strict_versions=False))
        controller, backend = make_controller(
            current='release/spring', branches={'master', 'develop', 'release/spring'}, namer=namer
        )
        controller.complete_release()
        assert ('tag', 'spring', 'master', True) in backend.ops

    def test_missing_release_branch_fails_before_any_step(self, make_controller):
        controller, backend = make_controller(current='develop', branches=self.BRANCHES)
        with pytest.raises(BranchNotFound, match="release/3.1.0"):
            controller.complete_release("3.1.0")
        assert backend.ops == [('fetch', 'origin', 'release/3.1.0')]

    def test_rerun_after_delete(self, make_controller):
        controller, backend = make_controller(current='develop', branches={'master', 'develop'},
                                              tagged={'master': ['3.0.0']})
        controller.complete_release("release/3.0.0")

        reconciles = [op for op in backend.ops if op[0] == 'reconcile']
        assert reconciles == [('reconcile', 'develop', 'master', Method.MERGE)]
        assert backend.ops[-1] == ('push', None, True, False)


# ---------------------------------------------------------------------------
# update / resume / primitives
# ---------------------------------------------------------------------------

class TestUpdate:

    def test_feature_rebase_force_pushes_after_confirmation(self, make_controller):
        controller, backend = make_controller(current='feature/x', branches={'master', 'develop', 'feature/x'})
        plan = controller.update(rebase=True)

        assert plan.method is Method.REBASE
        assert backend.ops == [
            ('fetch', 'origin', 'develop'),
            ('reconcile', 'feature/x', 'develop', Method.REBASE),
            ('confirm',),
            ('push', ('feature/x',), False, True),
        ]

    def test_declined_force_push(self, make_controller):
        controller, backend = make_controller(current='feature/x', approve=False)
        controller.update(rebase=True)
        assert not any(op[0] == 'push' for op in backend.ops)

    def test_hotfix_merges_from_trunk_without_push(self, make_controller):
        controller, backend = make_controller(current='hotfix/1.4.3')
        controller.update(no_fast_forward=True)
        assert backend.ops == [
            ('fetch', 'origin', 'master'),
            ('reconcile', 'hotfix/1.4.3', 'master', NO_FF),
        ]

    def test_explicit_source(self, make_controller):
        controller, backend = make_controller(current='master')
        controller.update("feature/shared")
        assert ('reconcile', 'master', 'feature/shared', Method.MERGE) in backend.ops

    def test_conflicting_flags_rejected_before_backend(self, make_controller):
        controller, backend = make_controller(current='feature/x')
        with pytest.raises(ConflictingStrategy):
            controller.update(rebase=True, no_fast_forward=True)
        assert backend.ops == []

    @pytest.mark.parametrize("current", ["master", "develop", "experiment"])
    def test_no_implicit_source(self, make_controller, current):
        controller, backend = make_controller(current=current)
        with pytest.raises(NoImplicitSource):
            controller.update()
        assert backend.ops == []

    def test_rebase_conflict_does_not_push(self, make_controller):
        conflict = MergeConflict("rebase stopped", rebasing=True)
        controller, backend = make_controller(current='feature/x', fail={'reconcile': conflict})
        with pytest.raises(MergeConflict):
            controller.update(rebase=True)
        assert [op[0] for op in backend.ops] == ['fetch', 'reconcile']

    def test_network_error(self, make_controller):
        controller, backend = make_controller(current='feature/x', fail={'fetch': NetworkError("offline")})
        with pytest.raises(NetworkError):
            controller.update(rebase=True)
        assert [op[0] for op in backend.ops] == ['fetch']


class TestPrimitives:

    def test_resume_rebase(self, make_controller):
        controller, backend = make_controller(current='feature/x', rebasing=True)
        controller.resume_rebase()
        assert backend.ops == [
            ('add-all',),
            ('continue-rebase',),
            ('confirm',),
            ('push', ('feature/x',), False, True),
        ]

    def test_resume_without_rebase_in_progress(self, make_controller):
        controller, backend = make_controller(current='feature/x')
        with pytest.raises(GitError, match="No rebase in progress"):
            controller.resume_rebase()
        assert backend.ops == []

    def test_tag_normalizes_version(self, make_controller):
        controller, backend = make_controller()
        assert controller.tag("v1.2.3") == "1.2.3"
        assert backend.ops == [('tag', '1.2.3', None, True)]

    def test_tag_rejects_malformed_version(self, make_controller):
        controller, backend = make_controller()
        with pytest.raises(UnrecognizedBranch):
            controller.tag("latest")
        assert backend.ops == []

    def test_delete_branch(self, make_controller):
        controller, backend = make_controller(branches={'master', 'develop', 'feature/x'})
        controller.delete_branch("feature/x", force=True)
        assert backend.ops == [('delete', 'feature/x', True)]

    def test_delete_not_fully_merged_is_not_escalated(self, make_controller):
        controller, backend = make_controller(
            branches={'master', 'develop', 'feature/x'}, fail={'delete': NotFullyMerged("not merged")}
        )
        with pytest.raises(NotFullyMerged):
            controller.delete_branch("feature/x")
        assert backend.ops == [('delete', 'feature/x', False)]

    def test_switch_to(self, make_controller):
        controller, backend = make_controller(current='develop')
        controller.switch_to("master")
        assert backend.current == "master"
