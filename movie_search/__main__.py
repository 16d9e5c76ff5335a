import uvicorn


def main():
    uvicorn.run("movie_search.main:app", host="0.0.0.0", port=6000)


if __name__ == "__main__":
    main()
