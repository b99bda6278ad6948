from pathlib import Path

from gitvision.adapters.vcs.git_cli import GitCLI
from gitvision.config import Settings
from gitvision.domain import RepositoryContext
from gitvision.services import AttributionCoordinator, CommitHistoryIndex


def _coordinator(root: Path, settings: Settings = None) -> AttributionCoordinator:
    vcs = GitCLI(root)
    return AttributionCoordinator(RepositoryContext(root, vcs, settings or Settings()))


def _key(repo, rel):
    return str(repo.root.resolve() / rel)


def test_history_labels(git_repo):
    index = CommitHistoryIndex.build(GitCLI(git_repo.root))
    assert index.labels() == ["1) Uncommitted changes", "2) C3", "3) C2", "4) C1"]
    assert index.get("3) C2").hash == git_repo.hashes["C2"]


def test_commit_owns_the_file_it_added(git_repo):
    coord = _coordinator(git_repo.root)
    coord.add_commits(["3) C2"])
    assert coord.get_highlight_data() == {_key(git_repo, "a.txt"): [0, 1, 2]}
    assert coord.get_highlight_files() == {_key(git_repo, "a.txt"): 3}


def test_head_commit_single_line(git_repo):
    coord = _coordinator(git_repo.root)
    coord.add_commits(["2) C3"])
    assert coord.get_highlight_data() == {_key(git_repo, "b.txt"): [5]}


def test_root_commit(git_repo):
    coord = _coordinator(git_repo.root)
    coord.add_commits(["4) C1"])
    assert coord.get_highlight_data() == {
        _key(git_repo, "README.md"): [0],
        _key(git_repo, "b.txt"): [0, 1, 2, 3, 4],
    }


def test_uncommitted_edit(git_repo):
    (git_repo.root / "a.txt").write_text("a0\nlocal edit\na2\n")
    coord = _coordinator(git_repo.root)
    coord.add_commits(["Uncommitted changes"])
    assert coord.get_highlight_data() == {_key(git_repo, "a.txt"): [1]}


def test_save_of_watched_file_picks_up_edit(git_repo):
    coord = _coordinator(git_repo.root, Settings(always_show_uncommitted=True))
    coord.add_commits(["3) C2"])
    assert coord.get_highlight_data() == {_key(git_repo, "a.txt"): [0, 1, 2]}

    (git_repo.root / "a.txt").write_text("a0\na1\na2\na3\n")
    assert coord.on_file_saved(git_repo.root / "a.txt") is True
    assert coord.get_highlight_data()[_key(git_repo, "a.txt")] == [0, 1, 2, 3]

    (git_repo.root / "README.md").write_text("hello\nworld\n")
    assert coord.on_file_saved(git_repo.root / "README.md") is True
    assert coord.get_highlight_data()[_key(git_repo, "README.md")] == [1]


def test_untracked_save_is_ignored(git_repo):
    coord = _coordinator(git_repo.root, Settings(always_show_uncommitted=True))
    (git_repo.root / "new.txt").write_text("fresh\n")
    assert coord.on_file_saved(git_repo.root / "new.txt") is False


def test_renamed_file_still_attributed(git_repo):
    (git_repo.root / "moved").mkdir()
    git_repo.git("mv", "a.txt", "moved/a.txt")
    git_repo.commit_all("Move a", when=4)

    coord = _coordinator(git_repo.root, Settings(find_renamed_files=True))
    assert "4) C2" in coord.index
    coord.add_commits(["4) C2"])

    assert coord.get_highlight_data() == {_key(git_repo, "moved/a.txt"): [0, 1, 2]}


def test_branch_commits(git_repo):
    git_repo.git("checkout", "-q", "-b", "feature")
    (git_repo.root / "a.txt").write_text("a0\na1\na2\nfeature\n")
    git_repo.commit_all("Feature work", when=4)

    coord = _coordinator(git_repo.root)
    assert coord.add_branch("main") == ["2) Feature work"]
    assert coord.get_highlight_data() == {_key(git_repo, "a.txt"): [3]}


def test_form_feed_line_does_not_shift_indices(git_repo):
    (git_repo.root / "c.txt").write_text("c0\n\x0c\nc2\n")
    git_repo.commit_all("Add c", when=4)
    (git_repo.root / "c.txt").write_text("c0\n\x0c\nc2 changed\n")
    git_repo.commit_all("New c", when=5)

    coord = _coordinator(git_repo.root)
    coord.add_commits(["2) New c"])

    assert coord.get_highlight_data() == {_key(git_repo, "c.txt"): [2]}
