from invoke.collection import Collection
from invoke.tasks import task


@task(default=True)
def run(ctx, host="127.0.0.1", port=8000, reload=False):
    """Run the API with uvicorn."""
    reload_arg = " --reload" if reload else ""
    ctx.run(f"uvicorn weather_metrics.main:app --host {host} --port {port}{reload_arg}")


serve_ns = Collection("serve", run=run)
