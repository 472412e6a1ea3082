from invoke.collection import Collection
from invoke.tasks import task

TEST_DIRECTORY = "tests"
PROJECT_DIRECTORY = "src"
PYTHON_DIRECTORIES = f"{PROJECT_DIRECTORY} {TEST_DIRECTORY} tasks"


@task
def bandit(ctx):
    """
    Check application code with bandit (tests rely on assert).
    """
    ctx.run(f"bandit -r {PROJECT_DIRECTORY} tasks")


@task
def ruff(ctx, auto_fix=False):
    """
    Lint project with ruff.
    """
    fix_arg = "--fix" if auto_fix else ""
    ctx.run(f"ruff check {fix_arg} {PYTHON_DIRECTORIES}")


@task
def pyrefly(ctx):
    """
    Type check project with pyrefly.
    """
    ctx.run(f"pyrefly check {PROJECT_DIRECTORY}")


@task
def format_code(ctx, check=False):
    """
    Format code with ruff, or only report files that would change.
    """
    check_arg = "--check" if check else ""
    ctx.run(f"ruff format {check_arg} {PYTHON_DIRECTORIES}")


@task(
    pre=[format_code, ruff, bandit, pyrefly],
    default=True,
)
def check_all(ctx):
    """Run all checkers."""


check_ns = Collection(
    "check",
    bandit=bandit,
    format_code=format_code,
    pyrefly=pyrefly,
    ruff=ruff,
    check_all=check_all,
)
