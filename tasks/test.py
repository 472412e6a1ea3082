from invoke.collection import Collection
from invoke.tasks import task


@task
def test_all(ctx, keyword=""):
    """Run all tests, optionally filtered by a -k expression."""
    keyword_arg = f' -k "{keyword}"' if keyword else ""
    ctx.run(f"pytest tests/{keyword_arg}")


test_ns = Collection("test", test_all=test_all)
