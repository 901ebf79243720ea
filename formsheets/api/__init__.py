from formsheets.api.submissions import router as submissions_router
