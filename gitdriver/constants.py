from enum import Enum


class BranchListMode(Enum):
    ALL = 1
    REMOTE = 2


DOT_GIT = ".git"
GIT_MODULES = ".gitmodules"
DEFAULT_REMOTE_NAME = "origin"

# ls-tree mode of a gitlink
SUBMODULE_MODE = "160000"

# Suffix marking a superproject URL that points at a working tree
NON_BARE_SUFFIX = "/" + DOT_GIT

# Identity environment variables
GIT_AUTHOR_NAME_ENV_VAR = "GIT_AUTHOR_NAME"
GIT_AUTHOR_EMAIL_ENV_VAR = "GIT_AUTHOR_EMAIL"
GIT_COMMITTER_NAME_ENV_VAR = "GIT_COMMITTER_NAME"
GIT_COMMITTER_EMAIL_ENV_VAR = "GIT_COMMITTER_EMAIL"
