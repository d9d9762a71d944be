"""Production entry point: `uvicorn session_server:app`.

Settings are read from the YAML file named by SESSION_SETTINGS
(default data/config/session.yml).
"""
import os

from session_lib.main import create_app, Config

app = create_app(Config(settings_path=os.environ.get('SESSION_SETTINGS', 'data/config/session.yml')))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get('PORT', '8000')))
