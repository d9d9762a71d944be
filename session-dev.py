# Development server for the session layer using the in-memory store
from session_lib.main import create_app, Config
app = create_app(Config(overrides={
    'SessionStrategy': 'InMemory',
    'SessionTimeout': 3600,
    'DefaultUsername': 'user',
    'DefaultPassword': 'test',
    'LogLevel': 'DEBUG',
}))
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
