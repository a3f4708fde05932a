from toko import create_app

app = create_app()
