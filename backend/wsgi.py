# Overview: WSGI entry point; FLASK_APP target for the CLI and production servers.

from shopdesk import create_app

app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
