import os

from floorstock import create_app
from floorstock.endpoint import create_endpoint_app

app = create_app()

if __name__ == "__main__":
    if os.environ.get("FLOORSTOCK_ROLE") == "endpoint":
        create_endpoint_app().run(port=5001, debug=True)
    else:
        app.run(debug=True)
