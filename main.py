from fastapi import FastAPI, Request, Body, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Any, Dict, List
from functools import lru_cache
from dotenv import load_dotenv
import logging
import os

from errors import ValidationError, ExternalServiceError, ParseError
from gemini_client import GeminiClient, ModelClient
from quiz_prompt import QuizResult, REQUIRED_FIELDS_MESSAGE, build_prompt
from response_normalizer import normalize_response


load_dotenv()

# --- Gemini setup ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
if not GEMINI_API_KEY:
    raise RuntimeError("GEMINI_API_KEY is not set; refusing to start.")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))

ALLOWED_ORIGINS: List[str] = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

ANALYSIS_FAILED_PREFIX = "বিশ্লেষণ তৈরি করতে সমস্যা হয়েছে"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
log = logging.getLogger("quiz-analysis")

app = FastAPI(title="Quiz Analysis")

# CORS for frontend, explicit allow-list only
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    log.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# body that is not a JSON object at all gets the same 400 as a missing field
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": REQUIRED_FIELDS_MESSAGE})


@lru_cache(maxsize=1)
def get_model_client() -> ModelClient:
    return GeminiClient(GEMINI_API_KEY, model_name=GEMINI_MODEL, timeout=GEMINI_TIMEOUT_SECONDS)


# ---------- Routes ----------
@app.get("/")
async def root():
    return {"message": "Quiz analysis service is running."}


@app.post("/api/analyze-answers")
async def analyze_answers(
    payload: Dict[str, Any] = Body(...),
    model_client: ModelClient = Depends(get_model_client),
):
    try:
        quiz = QuizResult.from_payload(payload)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    prompt = build_prompt(quiz)

    try:
        raw = await model_client.generate(prompt, prefer_json=True)
        analysis = normalize_response(raw)
    except (ExternalServiceError, ParseError) as e:
        log.exception("Error calling Gemini API for analysis")
        return JSONResponse(status_code=500, content={"error": f"{ANALYSIS_FAILED_PREFIX}: {e}"})
    except Exception as e:
        log.exception("Unexpected error while building analysis")
        return JSONResponse(status_code=500, content={"error": f"{ANALYSIS_FAILED_PREFIX}: {e}"})

    return {"analysis": analysis}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
