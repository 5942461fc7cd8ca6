import asyncio
import sys
from pathlib import Path

import courier


async def main() -> int:
    if len(sys.argv) < 3:
        url = input('Enter a URL to download: ').strip()
        target = input('Enter the destination file: ').strip()
    else:
        url, target = sys.argv[1].strip(), sys.argv[2].strip()

    exit_code = 1
    async with courier.Courier() as client:
        try:
            with Path(target).open('wb') as fd:
                info = await courier.stream(client, 'GET', url)(lambda info: fd)
            encoding = info.headers.get('content-encoding', 'identity')
            print(f'Saved {url} to {target} (status {info.status_code}, encoding {encoding})')
            exit_code = 0 if info.status_code < 400 else 1
        except Exception as exc:
            print(f'Error downloading {url}, check your network connection {exc}')

    return exit_code


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
