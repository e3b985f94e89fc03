"""Development entry point: `flask --app app run` or `python app.py`."""
import os

from labsite import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=app.config.get('DEBUG', False), port=int(os.environ.get('PORT', 5000)))
