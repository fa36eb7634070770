"""User, follow, points and notification endpoints."""
from conftest import api_user, api_post, grant_points


class TestUsers:
    async def test_create_and_get_user(self, client, session_factory):
        user = await api_user(client, 'olena')
        await grant_points(session_factory, user['id'], 12)

        resp = await client.get(f'/api/users/{user["id"]}')

        assert resp.status_code == 200
        data = resp.json()
        assert data['username'] == 'olena'
        assert data['country'] == 'UA'
        assert data['points'] == 12

    async def test_duplicate_username(self, client):
        await api_user(client, 'olena')

        resp = await client.post('/api/users', json={'username': 'olena'})

        assert resp.status_code == 400

    async def test_search_by_prefix(self, client):
        await api_user(client, 'olena')
        await api_user(client, 'oleg')
        await api_user(client, 'marek')

        resp = await client.get('/api/users/search?q=@OLE')

        assert [u['username'] for u in resp.json()] == ['oleg', 'olena']

    async def test_update_profile(self, client):
        user = await api_user(client, 'olena')

        resp = await client.patch(f'/api/users/{user["id"]}', json={'city': 'Lviv'})

        assert resp.status_code == 200
        assert (await client.get(f'/api/users/{user["id"]}')).json()['city'] == 'Lviv'

    async def test_missing_user(self, client):
        assert (await client.get('/api/users/404')).status_code == 404
        assert (await client.get('/api/users/404/points')).status_code == 404


class TestFollows:
    async def test_follow_and_unfollow(self, client):
        olena = await api_user(client, 'olena')
        marek = await api_user(client, 'marek')
        url = f'/api/users/{olena["id"]}/follow?follower_id={marek["id"]}'

        assert (await client.post(url)).status_code == 201
        assert (await client.post(url)).status_code == 400

        resp = await client.get(f'/api/users/{olena["id"]}?current_user_id={marek["id"]}')
        assert resp.json()['followers_count'] == 1
        assert resp.json()['is_following'] is True
        followers = (await client.get(f'/api/users/{olena["id"]}/followers')).json()
        assert [u['id'] for u in followers] == [marek['id']]
        following = (await client.get(f'/api/users/{marek["id"]}/following')).json()
        assert [u['id'] for u in following] == [olena['id']]

        assert (await client.delete(url)).status_code == 200
        assert (await client.delete(url)).status_code == 404

    async def test_cannot_follow_self(self, client):
        olena = await api_user(client, 'olena')

        resp = await client.post(f'/api/users/{olena["id"]}/follow?follower_id={olena["id"]}')

        assert resp.status_code == 400


class TestPoints:
    async def test_balance_reports_comment_cost(self, client):
        olena = await api_user(client, 'olena')

        resp = await client.get(f'/api/users/{olena["id"]}/points')

        assert resp.json() == {'user_id': olena['id'], 'balance': 0, 'comment_cost': 2}

    async def test_earned_history(self, client, session_factory):
        olena = await api_user(client, 'olena')
        await grant_points(session_factory, olena['id'], 5)
        await grant_points(session_factory, olena['id'], 3, 'verified complaint')

        earned = (await client.get(f'/api/users/{olena["id"]}/points/earned')).json()

        assert sorted(e['points'] for e in earned) == [3, 5]
        assert (await client.get(f'/api/users/{olena["id"]}/points')).json()['balance'] == 8

    async def test_clients_cannot_mint_points(self, client):
        olena = await api_user(client, 'olena')

        resp = await client.post(
            f'/api/users/{olena["id"]}/points/award', json={'points': 100},
        )

        assert resp.status_code in (404, 405)
        assert (await client.get(f'/api/users/{olena["id"]}/points')).json()['balance'] == 0
        assert (await client.get(f'/api/users/{olena["id"]}/points/earned')).json() == []


class TestNotifications:
    async def test_comment_and_follow_notifications(self, client, session_factory):
        author = await api_user(client, 'author')
        olena = await api_user(client, 'olena')
        await grant_points(session_factory, olena['id'], 2)
        post = await api_post(client, author['id'])

        await client.post(
            f'/api/posts/{post["id"]}/comments?user_id={olena["id"]}',
            json={'content': 'I was there too'},
        )
        await client.post(f'/api/users/{author["id"]}/follow?follower_id={olena["id"]}')

        resp = await client.get(f'/api/users/{author["id"]}/notifications?unread_only=true')
        notes = resp.json()
        assert sorted(n['type'] for n in notes) == ['comment', 'follow']
        assert all(n['sender_id'] == olena['id'] for n in notes)

        resp = await client.post(f'/api/users/{author["id"]}/notifications/read')
        assert resp.json() == {'updated': 2}
        resp = await client.get(f'/api/users/{author["id"]}/notifications?unread_only=true')
        assert resp.json() == []
