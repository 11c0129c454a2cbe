from tripsync.main import create_app

app = create_app()
