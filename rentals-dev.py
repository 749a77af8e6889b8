# Development server for the rentals store using the in-memory storage backend
from rentals_lib.main import create_app
from rentals_lib.config import Config
app = create_app(Config(storage_backend='memory', allow_data_clear=True, log_level='INFO'))
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
