from retailops import create_app

app = create_app()
