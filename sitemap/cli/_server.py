"""Server command."""

import click

from sitemap.cli import console


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.pass_obj
def serve(ctx_obj, host, port):
    """Serve sitemaps and search over HTTP"""
    import uvicorn
    from sitemap.server.app import create_app

    console.print(
        f"[cyan]Serving[/cyan] {ctx_obj.config.db_path} on [bold]http://{host}:{port}[/bold]"
    )
    uvicorn.run(create_app(ctx_obj.config), host=host, port=port, log_config=None)
