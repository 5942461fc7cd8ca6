import asyncio
import logging
import sys

import courier
from courier.http import policies


def response_str(response: courier.RequestResponse) -> str:
    sep = '-------------------------'
    result = f'\n{sep}\n'
    result += f'Status: {response.status_code} {response.status_message}\n'
    for name, value in response.headers.items():
        result += f'{name}: {value}\n'
    result += f'\n{response.data}\n{sep}'
    return result


async def main() -> int:
    logging.basicConfig(level=logging.DEBUG)

    if len(sys.argv) < 2:
        path = input('Enter a path to fetch from httpbin (e.g. /get): ').strip()
    else:
        path = sys.argv[1].strip()

    httpbin = courier.create_agent()
    registry = courier.AgentRegistry([
        courier.CustomAgent(
            path_prefix='httpbin',
            origin='https://httpbin.org',
            dispatcher=httpbin,
            limiter=courier.semaphore_limiter(4),
        ),
    ])

    exit_code = 1
    async with courier.Courier(registry) as client:
        try:
            result = await courier.retry(
                lambda: client.get(f'/httpbin/{path.lstrip("/")}'),
                courier.RetryOptions(retries=3, min_timeout=0.5),
                policies.httpcode(),
            )
            print(response_str(result.data))
            print(f'Attempts: {result.metrics.attempt}')
            exit_code = 0
        except courier.HttpOnHttpError as exc:
            print(f'Server answered {exc.status_code} {exc.status_message}')
        except courier.RetriesExceededError:
            print('Gave up after too many retries')
        except Exception as exc:
            print(f'Error fetching {path}, check your network connection {exc}')
        finally:
            await httpbin.aclose()

    return exit_code


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
