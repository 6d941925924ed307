from salonpos import create_app

app = create_app()
