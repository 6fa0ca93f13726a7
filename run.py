import threading
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from neuropath import create_app
from neuropath.services.ai_service import ai_service

app = create_app()

def startup_status_check():
    try:
        ai_service.check_server_status()
    except Exception as e:
        app.logger.error(f"AI status check error: {e}")

if __name__ == '__main__':
    if not os.environ.get("WERKZEUG_RUN_MAIN") == "true": # Prevent double run with reloader
        threading.Thread(target=startup_status_check, daemon=True).start()

    port = int(os.environ.get("PORT", 7860))
    app.run(host='0.0.0.0', port=port, debug=os.environ.get("FLASK_DEBUG") == "1", use_reloader=False)
