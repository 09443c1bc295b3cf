import sys

from git_worktree_sync.cli.main import main

sys.exit(main())
