import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studyhub.api.deps import build_client
from studyhub.api.routes import auth, documents, home, questions
from studyhub.core.auth import initialize_firebase
from studyhub.core.config import LOG_LEVEL
from studyhub.core.database import Base, engine
from studyhub.core.errors import StudyHubError
from studyhub.services.client import ClientRegistry

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="StudyHub.VN")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.registry = ClientRegistry(build_client)

# Include routers
app.include_router(home.router)
app.include_router(auth.router)
app.include_router(documents.router)
app.include_router(questions.router)


@app.exception_handler(StudyHubError)
async def studyhub_error_handler(request: Request, exc: StudyHubError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)
    initialize_firebase()


@app.on_event("shutdown")
def shutdown():
    app.state.registry.close_all()


@app.get("/health")
def health_check():
    return {"status": "ok", "message": "StudyHub is running"}
