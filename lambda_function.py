from mangum import Mangum
from main import app

# Tables are managed by alembic in deployed stages
handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    return handler(event, context)
